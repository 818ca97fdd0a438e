"""Service for the restaurant-wide settings row."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from qrdine_shared.constants import DEFAULT_SETTINGS, LOG_SETTINGS, SETTINGS_ROW_ID, ChangeType
from qrdine_shared.db import get_session
from qrdine_shared.models import SystemSettings
from qrdine_shared.realtime import record_change
from qrdine_shared.schemas import SettingsRequest
from qrdine_shared.serializers import serialize_settings
from qrdine_shared.services.audit_service import append_log

logger = logging.getLogger(__name__)


def default_settings() -> dict[str, Any]:
    return serialize_settings(SystemSettings(id=SETTINGS_ROW_ID, **DEFAULT_SETTINGS))


def get_settings() -> dict[str, Any]:
    """The stored settings, or the built-in defaults when the row is missing or unreadable."""
    try:
        with get_session() as session:
            row = session.get(SystemSettings, SETTINGS_ROW_ID)
            if row is None:
                return default_settings()
            return serialize_settings(row)
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching settings: {exc}")
        return default_settings()


def save_settings(
    payload: SettingsRequest | dict[str, Any], actor: str | None = None
) -> dict[str, Any] | None:
    data = (
        payload if isinstance(payload, SettingsRequest) else SettingsRequest.model_validate(payload)
    )
    try:
        with get_session() as session:
            row = session.get(SystemSettings, SETTINGS_ROW_ID)
            is_new = row is None
            if is_new:
                row = SystemSettings(id=SETTINGS_ROW_ID)
                session.add(row)
            row.restaurant_name = data.restaurant_name
            row.address = data.address
            row.phone = data.phone
            row.wifi_pass = data.wifi_pass
            row.tax_rate = data.tax_rate
            session.flush()

            serialized = serialize_settings(row)
            record_change(
                session,
                "settings",
                ChangeType.INSERT if is_new else ChangeType.UPDATE,
                SETTINGS_ROW_ID,
                serialized,
            )
            append_log(session, LOG_SETTINGS, "Cập nhật cấu hình hệ thống", actor)
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error saving settings: {exc}")
        return None


def ensure_settings_row(session) -> SystemSettings:
    row = session.get(SystemSettings, SETTINGS_ROW_ID)
    if row is None:
        row = SystemSettings(id=SETTINGS_ROW_ID, **DEFAULT_SETTINGS)
        session.add(row)
    return row


def check_connection() -> bool:
    """Best-effort probe of the store; an empty settings table still counts as connected."""
    try:
        with get_session() as session:
            session.execute(select(SystemSettings.id).limit(1)).first()
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Connection check failed: {exc}")
        return False
