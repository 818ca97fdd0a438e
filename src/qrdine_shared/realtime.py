"""
Topic-scoped change feed.

Mutations call :func:`record_change` inside their own transaction, so the
event row commits (or rolls back) together with the data it describes.
Polling clients read by topic and ``after_id``; in-process listeners
registered with :func:`subscribe` are called once the transaction commits.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy import event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from qrdine_shared.constants import (
    STAFF_TOPICS,
    TOPIC_LOGS,
    TOPIC_MENU,
    TOPIC_ORDERS,
    TOPIC_SETTINGS,
    TOPIC_STAFF,
    TOPIC_TABLES,
    ChangeType,
    table_orders_topic,
)
from qrdine_shared.db import get_session
from qrdine_shared.logging_config import get_logger
from qrdine_shared.models import RealtimeEvent
from qrdine_shared.serializers import serialize_event

logger = get_logger(__name__)

DEFAULT_LIMIT = 100
HARD_LIMIT = 250

_PENDING_KEY = "qrdine_pending_events"

Listener = Callable[[dict[str, Any]], None]

_listeners: dict[str, list[Listener]] = {}
_listeners_lock = threading.Lock()


def subscribe(topic: str, callback: Listener) -> Callable[[], None]:
    """
    Register ``callback`` for committed events on ``topic``.

    Returns a function that removes the subscription.
    """
    with _listeners_lock:
        _listeners.setdefault(topic, []).append(callback)

    def unsubscribe() -> None:
        with _listeners_lock:
            callbacks = _listeners.get(topic, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                _listeners.pop(topic, None)

    return unsubscribe


def clear_subscriptions() -> None:
    with _listeners_lock:
        _listeners.clear()


def topics_for(entity: str, payload: dict[str, Any] | None) -> list[str]:
    """Topics that care about a row of ``entity``."""
    if entity == "order":
        topics = [TOPIC_ORDERS]
        table_id = (payload or {}).get("tableId")
        if table_id:
            topics.append(table_orders_topic(table_id))
        return topics
    if entity in {"product", "category"}:
        return [TOPIC_MENU]
    if entity == "table":
        return [TOPIC_TABLES]
    if entity == "staff":
        return [TOPIC_STAFF]
    if entity == "settings":
        return [TOPIC_SETTINGS]
    if entity == "log":
        return [TOPIC_LOGS]
    return []


def record_change(
    session: Session,
    entity: str,
    change: ChangeType,
    record_id: str | int | None,
    payload: dict[str, Any] | None,
    topics: Iterable[str] | None = None,
) -> list[RealtimeEvent]:
    """
    Stage one row-level event per topic on the caller's session.
    """
    events = []
    for topic in topics if topics is not None else topics_for(entity, payload):
        realtime_event = RealtimeEvent(
            topic=topic,
            event_type=change.value,
            entity=entity,
            record_id=str(record_id) if record_id is not None else None,
            payload=payload,
        )
        session.add(realtime_event)
        events.append(realtime_event)
    session.info.setdefault(_PENDING_KEY, []).extend(events)
    return events


@event.listens_for(Session, "after_commit")
def _dispatch_committed(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    if not pending:
        return
    with _listeners_lock:
        snapshot = {topic: list(callbacks) for topic, callbacks in _listeners.items()}
    for realtime_event in pending:
        callbacks = snapshot.get(realtime_event.topic, [])
        if not callbacks:
            continue
        data = serialize_event(realtime_event)
        for callback in callbacks:
            try:
                callback(data)
            except Exception as exc:
                logger.error(f"Realtime listener failed for topic {realtime_event.topic}: {exc}")


@event.listens_for(Session, "after_soft_rollback")
def _discard_rolled_back(session: Session, previous_transaction) -> None:
    session.info.pop(_PENDING_KEY, None)


def read_events(topic: str, after_id: int = 0, limit: int | None = None) -> list[dict[str, Any]]:
    """Committed events on ``topic`` with id greater than ``after_id``, oldest first."""
    limit = min(limit or DEFAULT_LIMIT, HARD_LIMIT)
    try:
        with get_session() as session:
            rows = (
                session.execute(
                    select(RealtimeEvent)
                    .where(RealtimeEvent.topic == topic, RealtimeEvent.id > after_id)
                    .order_by(RealtimeEvent.id)
                    .limit(limit)
                )
                .scalars()
                .all()
            )
            return [serialize_event(row) for row in rows]
    except SQLAlchemyError as exc:
        logger.error(f"Error reading realtime events for topic {topic}: {exc}")
        return []


def latest_event_id(topic: str) -> int:
    try:
        with get_session() as session:
            last = session.execute(
                select(RealtimeEvent.id)
                .where(RealtimeEvent.topic == topic)
                .order_by(RealtimeEvent.id.desc())
                .limit(1)
            ).scalar_one_or_none()
            return last or 0
    except SQLAlchemyError as exc:
        logger.error(f"Error reading latest realtime event for topic {topic}: {exc}")
        return 0


def can_read_topic(topic: str, is_staff: bool) -> bool:
    """
    Staff read every topic. Anyone holding a table link reads the menu and
    the order stream of a single table.
    """
    if is_staff:
        return topic in STAFF_TOPICS or topic.startswith(f"{TOPIC_ORDERS}:table:")
    return topic == TOPIC_MENU or topic.startswith(f"{TOPIC_ORDERS}:table:")
