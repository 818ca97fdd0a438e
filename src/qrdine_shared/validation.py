"""
Input validation utilities.
"""

import re

TABLE_ID_REGEX = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class ValidationError(ValueError):
    """Raised when validation fails."""

    pass


def validate_password(password: str) -> None:
    """
    Validate password strength for staff accounts.

    Only a minimum length is enforced; staff accounts are created by other
    staff, not by self-registration.
    """
    if not password:
        raise ValidationError("Mật khẩu là bắt buộc")

    if len(password) < 6:
        raise ValidationError("Mật khẩu phải có ít nhất 6 ký tự")


def validate_role(role: str) -> None:
    from qrdine_shared.constants import StaffRole

    if role not in StaffRole.all_values():
        allowed = ", ".join(sorted(StaffRole.all_values()))
        raise ValidationError(f"Vai trò không hợp lệ: {role}. Giá trị cho phép: {allowed}")


def validate_table_id(table_id: str) -> str:
    """Validate a table id used in URLs and cookie names; returns the stripped id."""
    normalized = (table_id or "").strip()
    if not TABLE_ID_REGEX.match(normalized):
        raise ValidationError("Mã bàn không hợp lệ")
    return normalized
