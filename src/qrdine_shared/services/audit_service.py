"""
Action log: an append-only record of what staff did.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrdine_shared.constants import LOG_LIST_LIMIT, SYSTEM_USER, ChangeType
from qrdine_shared.db import get_session
from qrdine_shared.models import ActionLog
from qrdine_shared.realtime import record_change
from qrdine_shared.serializers import serialize_log

logger = logging.getLogger(__name__)


def append_log(session: Session, action: str, details: str, user: str | None) -> ActionLog:
    """Stage a log row on an open session so it commits with the change it describes."""
    entry = ActionLog(action=action, details=details or "", user=user or SYSTEM_USER)
    session.add(entry)
    session.flush()
    record_change(session, "log", ChangeType.INSERT, entry.id, serialize_log(entry))
    return entry


def add_log(action: str, details: str, user: str | None = None) -> bool:
    try:
        with get_session() as session:
            append_log(session, action, details, user)
        return True
    except SQLAlchemyError as exc:
        logger.error(f"Error adding action log '{action}': {exc}")
        return False


def list_logs(limit: int = LOG_LIST_LIMIT) -> list[dict]:
    """Newest first."""
    try:
        with get_session() as session:
            rows = (
                session.execute(
                    select(ActionLog)
                    .order_by(ActionLog.timestamp.desc(), ActionLog.id.desc())
                    .limit(limit)
                )
                .scalars()
                .all()
            )
            return [serialize_log(row) for row in rows]
    except SQLAlchemyError as exc:
        logger.error(f"Error listing action logs: {exc}")
        return []
