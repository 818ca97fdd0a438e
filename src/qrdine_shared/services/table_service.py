"""
Dining tables: CRUD, the occupied flag and QR codes.
"""

from __future__ import annotations

from io import BytesIO
from typing import Any
from urllib.parse import urlencode

import qrcode
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrdine_shared.constants import LOG_TABLE, ChangeType
from qrdine_shared.datetime_utils import now_ms
from qrdine_shared.db import get_session
from qrdine_shared.logging_config import get_logger
from qrdine_shared.models import DiningTable
from qrdine_shared.realtime import record_change
from qrdine_shared.schemas import TableRequest
from qrdine_shared.serializers import serialize_table
from qrdine_shared.services.audit_service import append_log

logger = get_logger(__name__)


def list_tables() -> list[dict[str, Any]]:
    try:
        with get_session() as session:
            rows = session.execute(select(DiningTable).order_by(DiningTable.id)).scalars().all()
            return [serialize_table(t) for t in rows]
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching tables: {exc}")
        return []


def get_table(table_id: str) -> dict[str, Any] | None:
    try:
        with get_session() as session:
            table = session.get(DiningTable, table_id)
            return serialize_table(table) if table else None
    except SQLAlchemyError as exc:
        logger.error(f"Error fetching table {table_id}: {exc}")
        return None


def save_table(
    payload: TableRequest | dict[str, Any], actor: str | None = None
) -> dict[str, Any] | None:
    """
    Upsert a table. Tables created without an id get a time-based one.
    """
    data = payload if isinstance(payload, TableRequest) else TableRequest.model_validate(payload)
    table_id = data.id or str(now_ms())
    try:
        with get_session() as session:
            table = session.get(DiningTable, table_id)
            is_new = table is None
            if is_new:
                table = DiningTable(id=table_id)
                session.add(table)
            table.name = data.name
            table.is_occupied = data.is_occupied
            session.flush()

            serialized = serialize_table(table)
            record_change(
                session,
                "table",
                ChangeType.INSERT if is_new else ChangeType.UPDATE,
                table.id,
                serialized,
            )
            append_log(session, LOG_TABLE, f"Lưu bàn: {table.name}", actor)
            return serialized
    except SQLAlchemyError as exc:
        logger.error(f"Error saving table '{data.name}': {exc}")
        return None


def delete_table(table_id: str, actor: str | None = None) -> bool:
    """Orders placed at the table are kept."""
    try:
        with get_session() as session:
            table = session.get(DiningTable, table_id)
            if table is None:
                return False
            session.delete(table)
            record_change(session, "table", ChangeType.DELETE, table_id, {"id": table_id})
            append_log(session, LOG_TABLE, f"Xóa bàn ID: {table_id}", actor)
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error deleting table {table_id}: {exc}")
        return False


def set_occupied(session: Session, table_id: str, is_occupied: bool) -> DiningTable | None:
    """Flip the flag on an open session and stage the change event."""
    table = session.get(DiningTable, table_id)
    if table is None:
        return None
    if table.is_occupied != is_occupied:
        table.is_occupied = is_occupied
        session.flush()
        record_change(session, "table", ChangeType.UPDATE, table.id, serialize_table(table))
    return table


def update_table_status(table_id: str, is_occupied: bool, actor: str | None = None) -> bool:
    try:
        with get_session() as session:
            table = set_occupied(session, table_id, is_occupied)
            if table is None:
                return False
            state = "có khách" if is_occupied else "trống"
            append_log(session, LOG_TABLE, f"Bàn {table.name} -> {state}", actor)
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error updating table status {table_id}: {exc}")
        return False


def build_table_url(base_url: str, table_id: str) -> str:
    """``<origin><path>?table=<id>``, the payload printed in the table's QR code."""
    return f"{base_url.rstrip('/')}/?{urlencode({'table': table_id})}"


def generate_qr_png(data: str) -> BytesIO:
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    img_buffer = BytesIO()
    img.save(img_buffer, format="PNG")
    img_buffer.seek(0)
    return img_buffer
