"""
Working set of the admin dashboard and how change-feed rows update it.
"""

from __future__ import annotations

from typing import Any

from qrdine_shared.constants import (
    TOPIC_MENU,
    TOPIC_ORDERS,
    TOPIC_TABLES,
    ChangeType,
    OrderStatus,
)
from qrdine_shared.logging_config import get_logger
from qrdine_shared.realtime import latest_event_id
from qrdine_shared.services.menu_service import list_categories, list_products
from qrdine_shared.services.order_service import list_orders
from qrdine_shared.services.order_state_machine import available_actions
from qrdine_shared.services.settings_service import check_connection
from qrdine_shared.services.stats_service import DEFAULT_TIMEZONE, compute_stats, dashboard_summary
from qrdine_shared.services.table_service import list_tables

logger = get_logger(__name__)

DASHBOARD_TOPICS = (TOPIC_ORDERS, TOPIC_MENU, TOPIC_TABLES)

# entity -> attribute holding its rows
_COLLECTIONS = {
    "order": "orders",
    "product": "products",
    "category": "categories",
    "table": "tables",
}


def with_actions(order: dict[str, Any]) -> dict[str, Any]:
    """Order plus the status buttons the dashboard may offer for it."""
    return {**order, "actions": available_actions(order["status"])}


def newest_order(orders: list[dict[str, Any]]) -> dict[str, Any] | None:
    if not orders:
        return None
    return max(orders, key=lambda order: order.get("createdAt") or 0)


def new_order_alert(orders: list[dict[str, Any]], last_seen_id: str | None) -> dict[str, Any] | None:
    """
    Alert for the bell and toast when an unseen order arrived.

    Nothing is raised on the first load (``last_seen_id`` unknown) or when the
    newest order is no longer PENDING.
    """
    newest = newest_order(orders)
    if newest is None or not last_seen_id or newest["id"] == last_seen_id:
        return None
    if newest["status"] != OrderStatus.PENDING.value:
        return None
    return {
        "orderId": newest["id"],
        "tableId": newest["tableId"],
        "message": f"Đơn mới từ Bàn {newest['tableId']}!",
    }


class AdminDashboardView:
    """
    Orders, menu, tables and statistics for a signed-in staff member.

    ``load`` reads everything; ``apply_event`` folds single rows from the
    ``orders``, ``menu`` and ``tables`` topics in and recomputes the figures
    that depend on them.
    """

    def __init__(self, staff: dict[str, Any] | None, timezone_name: str = DEFAULT_TIMEZONE):
        self.staff = staff
        self.timezone_name = timezone_name
        self.orders: list[dict[str, Any]] = []
        self.products: list[dict[str, Any]] = []
        self.categories: list[dict[str, Any]] = []
        self.tables: list[dict[str, Any]] = []
        self.stats: dict[str, Any] = {}
        self.summary: dict[str, Any] = {}
        self.is_connected = False
        self.cursors: dict[str, int] = {}

    def load(self) -> AdminDashboardView:
        self.is_connected = check_connection()
        if not self.is_connected:
            logger.warning("Dashboard loaded while the database is unreachable")
        self.cursors = {topic: latest_event_id(topic) for topic in DASHBOARD_TOPICS}
        self.orders = list_orders()
        self.products = list_products()
        self.categories = list_categories()
        self.tables = list_tables()
        self._recompute()
        return self

    def _recompute(self) -> None:
        self.stats = compute_stats(self.orders, self.timezone_name)
        self.summary = dashboard_summary(self.orders, self.tables, self.timezone_name)

    def apply_event(self, event: dict[str, Any]) -> dict[str, Any] | None:
        """
        Apply one committed event. Returns a new-order alert when the event
        brought in an unseen PENDING order.
        """
        topic = event.get("topic")
        if topic in self.cursors:
            self.cursors[topic] = max(self.cursors[topic], int(event.get("id") or 0))

        attribute = _COLLECTIONS.get(event.get("entity"))
        if attribute is None:
            return None

        previous_newest = newest_order(self.orders)
        rows = getattr(self, attribute)
        record_id = event.get("recordId")
        if event.get("eventType") == ChangeType.DELETE.value:
            rows = [row for row in rows if str(row["id"]) != record_id]
        else:
            payload = event.get("payload") or {}
            if any(str(row["id"]) == record_id for row in rows):
                rows = [payload if str(row["id"]) == record_id else row for row in rows]
            else:
                rows = [payload] + rows
        setattr(self, attribute, rows)

        if attribute in ("orders", "tables"):
            self._recompute()
        if attribute == "orders" and previous_newest is not None:
            return new_order_alert(self.orders, previous_newest["id"])
        return None

    def to_dict(self, last_seen_order_id: str | None = None) -> dict[str, Any]:
        return {
            "user": self.staff,
            "isConnected": self.is_connected,
            "orders": [with_actions(order) for order in self.orders],
            "products": self.products,
            "categories": self.categories,
            "tables": self.tables,
            "stats": self.stats,
            "summary": self.summary,
            "pendingCount": self.summary.get("pendingOrders", 0),
            "newestOrderId": (newest_order(self.orders) or {}).get("id"),
            "alert": new_order_alert(self.orders, last_seen_order_id),
            "cursors": self.cursors,
        }
