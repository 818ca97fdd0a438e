"""
Helpers for browser-held customer state.

Two signed cookies replace browser-local storage:

* ``qrdine_table_<tableId>``: the table session ``{name, joined, cart,
  placedOrderId, dismissedOrderId, timestamp}``. It expires
  ``TABLE_SESSION_TTL_HOURS`` after the original ``timestamp``; rewrites
  keep that timestamp. Cart lines carry only product id, quantity and
  note; names and prices are read back from the menu.
* ``qrdine_customer_name``: the last name used on any table, kept for
  ``CUSTOMER_NAME_TTL_DAYS`` from when it was first saved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flask import Request, Response, current_app, request
from werkzeug.http import dump_cookie

from qrdine_shared.constants import CUSTOMER_NAME_COOKIE, TABLE_SESSION_COOKIE_PREFIX
from qrdine_shared.datetime_utils import now_ms
from qrdine_shared.jwt_service import (
    TOKEN_CUSTOMER_NAME,
    TOKEN_TABLE_SESSION,
    InvalidTokenError,
    TokenExpiredError,
    create_customer_name_token,
    create_table_session_token,
    decode_token,
)
from qrdine_shared.logging_config import get_logger
from qrdine_shared.validation import ValidationError

logger = get_logger(__name__)


def _cookie_line(line: dict[str, Any]) -> dict[str, Any]:
    compact = {"id": line["id"], "quantity": int(line["quantity"])}
    if line.get("note"):
        compact["note"] = line["note"]
    return compact


def table_cookie_name(table_id: str) -> str:
    return f"{TABLE_SESSION_COOKIE_PREFIX}{table_id}"


def _table_ttl_hours() -> int:
    return current_app.config.get("TABLE_SESSION_TTL_HOURS", 24)


def _name_ttl_days() -> int:
    return current_app.config.get("CUSTOMER_NAME_TTL_DAYS", 30)


@dataclass
class TableSession:
    """What one browser remembers about one table."""

    table_id: str
    name: str = ""
    joined: bool = False
    cart: list[dict[str, Any]] = field(default_factory=list)
    placed_order_id: str | None = None
    dismissed_order_id: str | None = None
    timestamp: int = field(default_factory=now_ms)

    def to_state(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "joined": self.joined,
            "cart": [_cookie_line(line) for line in self.cart],
            "placedOrderId": self.placed_order_id,
            "dismissedOrderId": self.dismissed_order_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_state(cls, table_id: str, state: dict[str, Any]) -> TableSession:
        return cls(
            table_id=table_id,
            name=state.get("name") or "",
            joined=bool(state.get("joined")),
            cart=[
                {
                    "id": line["id"],
                    "quantity": int(line.get("quantity") or 1),
                    "note": line.get("note") or "",
                }
                for line in state.get("cart") or []
                if line.get("id")
            ],
            placed_order_id=state.get("placedOrderId"),
            dismissed_order_id=state.get("dismissedOrderId"),
            timestamp=int(state.get("timestamp") or now_ms()),
        )

    def is_expired(self, ttl_hours: int, now: int | None = None) -> bool:
        now = now if now is not None else now_ms()
        return now - self.timestamp > ttl_hours * 3600 * 1000


def load_table_session(table_id: str, req: Request | None = None) -> tuple[TableSession | None, bool]:
    """
    Read the table session cookie.

    Returns ``(session, expired)``. An expired or tampered cookie yields
    ``(None, True)`` so the caller clears it.
    """
    req = req or request
    token = req.cookies.get(table_cookie_name(table_id))
    if not token:
        return None, False
    try:
        payload = decode_token(token, verify_type=TOKEN_TABLE_SESSION)
    except TokenExpiredError:
        logger.info(f"Table session for {table_id} expired")
        return None, True
    except InvalidTokenError as e:
        logger.warning(f"Discarding invalid table session for {table_id}: {e}")
        return None, True

    if payload.get("table_id") != table_id:
        return None, True
    session = TableSession.from_state(table_id, payload.get("state") or {})
    if session.is_expired(_table_ttl_hours()):
        return None, True
    return session, False


def save_table_session(response: Response, session: TableSession) -> None:
    """
    Rewrite the whole table session; the original timestamp is kept.

    Cart lines are stored as ``{id, quantity, note}`` only. A session that
    would not fit in one browser cookie is refused with ``ValidationError``
    and the previous cookie stays in place.
    """
    ttl_hours = _table_ttl_hours()
    token = create_table_session_token(session.table_id, session.to_state(), ttl_hours)
    remaining = max(int((session.timestamp + ttl_hours * 3600 * 1000 - now_ms()) / 1000), 0)
    cookie_args = {
        "max_age": remaining,
        "httponly": True,
        "samesite": "Lax",
        "secure": request.is_secure,
    }
    name = table_cookie_name(session.table_id)
    if len(dump_cookie(name, token, **cookie_args)) > response.max_cookie_size:
        logger.warning(f"Table session for {session.table_id} too large for a cookie")
        raise ValidationError("Giỏ hàng quá lớn, vui lòng bớt món hoặc rút gọn ghi chú")
    response.set_cookie(name, token, **cookie_args)


def clear_table_session(response: Response, table_id: str) -> None:
    response.delete_cookie(table_cookie_name(table_id), path="/")


def _read_name_payload(req: Request) -> dict[str, Any] | None:
    token = req.cookies.get(CUSTOMER_NAME_COOKIE)
    if not token:
        return None
    try:
        return decode_token(token, verify_type=TOKEN_CUSTOMER_NAME)
    except (TokenExpiredError, InvalidTokenError):
        return None


def load_customer_name(req: Request | None = None) -> str | None:
    payload = _read_name_payload(req or request)
    return (payload or {}).get("name") or None


def save_customer_name(response: Response, name: str, req: Request | None = None) -> None:
    """
    Remember ``name`` for any table. The 30-day window starts at the first
    save and is kept when the same name is saved again.
    """
    req = req or request
    timestamp = now_ms()
    existing = _read_name_payload(req)
    if existing and existing.get("name") == name:
        timestamp = int(existing.get("timestamp") or timestamp)

    ttl_days = _name_ttl_days()
    token = create_customer_name_token(name, timestamp, ttl_days)
    remaining = max(int((timestamp + ttl_days * 86400 * 1000 - now_ms()) / 1000), 0)
    response.set_cookie(
        CUSTOMER_NAME_COOKIE,
        token,
        max_age=remaining,
        httponly=True,
        samesite="Lax",
        secure=req.is_secure,
    )
