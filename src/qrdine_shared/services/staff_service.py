"""
Staff account management.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from qrdine_shared.constants import LOG_STAFF, ChangeType
from qrdine_shared.db import get_session
from qrdine_shared.models import Staff
from qrdine_shared.realtime import record_change
from qrdine_shared.schemas import ProfileRequest, StaffRequest
from qrdine_shared.serializers import serialize_staff
from qrdine_shared.services.audit_service import append_log
from qrdine_shared.validation import ValidationError

logger = logging.getLogger(__name__)


def list_staff() -> list[dict[str, Any]]:
    try:
        with get_session() as session:
            rows = (
                session.execute(select(Staff).order_by(Staff.created_at, Staff.username))
                .scalars()
                .all()
            )
            return [serialize_staff(s) for s in rows]
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching staff: {exc}")
        return []


def save_staff(
    payload: StaffRequest | dict[str, Any], actor: str | None = None
) -> dict[str, Any] | None:
    """
    Create or update a staff account.

    A new account needs a password. On update an empty password keeps the
    stored hash, and the username cannot change.
    """
    data = payload if isinstance(payload, StaffRequest) else StaffRequest.model_validate(payload)
    try:
        with get_session() as session:
            staff = session.get(Staff, data.id) if data.id else None
            is_new = staff is None
            if is_new:
                if not data.password:
                    raise ValidationError("Mật khẩu là bắt buộc khi tạo nhân viên mới")
                staff = Staff(id=data.id) if data.id else Staff()
                staff.username = data.username
                session.add(staff)
            elif staff.username != data.username:
                raise ValidationError("Không thể thay đổi tên đăng nhập")

            if data.password:
                staff.set_password(data.password)
            staff.role = data.role
            staff.name = data.name
            staff.avatar_url = data.avatar_url
            session.flush()

            serialized = serialize_staff(staff)
            record_change(
                session,
                "staff",
                ChangeType.INSERT if is_new else ChangeType.UPDATE,
                staff.id,
                serialized,
            )
            append_log(
                session,
                LOG_STAFF,
                f"{'Thêm' if is_new else 'Sửa'} nhân viên: {staff.username}",
                actor,
            )
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error saving staff '{data.username}': {exc}")
        return None


def delete_staff(staff_id: str, actor: str | None = None) -> bool:
    try:
        with get_session() as session:
            staff = session.get(Staff, staff_id)
            if staff is None:
                return False
            username = staff.username
            session.delete(staff)
            record_change(session, "staff", ChangeType.DELETE, staff_id, {"id": staff_id})
            append_log(session, LOG_STAFF, f"Xóa nhân viên: {username}", actor)
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error deleting staff {staff_id}: {exc}")
        return False


def update_profile(staff_id: str, payload: ProfileRequest | dict[str, Any]) -> dict[str, Any] | None:
    """Self-service update of display name, avatar and (optionally) password."""
    data = payload if isinstance(payload, ProfileRequest) else ProfileRequest.model_validate(payload)
    try:
        with get_session() as session:
            staff = session.get(Staff, staff_id)
            if staff is None:
                return None
            staff.name = data.name
            staff.avatar_url = data.avatar_url
            if data.password:
                staff.set_password(data.password)
            session.flush()

            serialized = serialize_staff(staff)
            record_change(session, "staff", ChangeType.UPDATE, staff.id, serialized)
            append_log(session, LOG_STAFF, f"Cập nhật hồ sơ: {staff.username}", staff.name)
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error updating profile {staff_id}: {exc}")
        return None
