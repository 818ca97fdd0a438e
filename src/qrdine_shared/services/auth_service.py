"""
Authentication Service.

Verifies staff credentials against the stored salted hash and records
sign-in/sign-out in the action log. Session storage itself lives in
``qrdine_shared.session_context``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from qrdine_shared.constants import LOG_LOGIN, LOG_LOGOUT
from qrdine_shared.db import get_session
from qrdine_shared.logging_config import get_logger
from qrdine_shared.models import Staff
from qrdine_shared.serializers import serialize_staff
from qrdine_shared.services.audit_service import append_log

logger = get_logger(__name__)


@dataclass
class AuthResult:
    """Outcome of a login attempt."""

    success: bool
    staff: dict[str, Any] | None = None
    error_message: str | None = None


def authenticate(username: str, password: str) -> AuthResult:
    """
    Check credentials for the exact (case-sensitive) username.

    On success one login row is appended to the action log in the same
    transaction. Failures append nothing.
    """
    if not username or not password:
        return AuthResult(success=False, error_message="Sai tên đăng nhập hoặc mật khẩu")

    try:
        with get_session() as session:
            staff = (
                session.execute(select(Staff).where(Staff.username == username))
                .scalars()
                .one_or_none()
            )
            if staff is None or not staff.verify_password(password):
                logger.warning(f"Login failed for username '{username}'")
                return AuthResult(success=False, error_message="Sai tên đăng nhập hoặc mật khẩu")

            append_log(session, LOG_LOGIN, "Đăng nhập vào hệ thống", staff.name)
            return AuthResult(success=True, staff=serialize_staff(staff))
    except SQLAlchemyError as exc:
        logger.error(f"Error during login for '{username}': {exc}")
        return AuthResult(success=False, error_message="Không thể kết nối cơ sở dữ liệu")


def login(username: str, password: str) -> dict[str, Any] | None:
    """Staff data (no password) when the credentials match, else None."""
    result = authenticate(username, password)
    return result.staff if result.success else None


def logout(user: dict[str, Any] | None) -> bool:
    """Record a sign-out for ``user``. Clearing the cookies is the caller's job."""
    if not user:
        return False
    try:
        with get_session() as session:
            append_log(session, LOG_LOGOUT, "Đăng xuất khỏi hệ thống", user.get("name"))
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error recording logout: {exc}")
        return False
