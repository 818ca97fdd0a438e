"""
Business logic behind the customer ordering screen of one table.
"""

from __future__ import annotations

from typing import Any

from qrdine_clients.utils.customer_session import TableSession
from qrdine_shared.constants import (
    ALL_CATEGORIES,
    OPEN_ORDER_STATUSES,
    TOPIC_MENU,
    ChangeType,
    table_orders_topic,
)
from qrdine_shared.logging_config import get_logger
from qrdine_shared.realtime import latest_event_id
from qrdine_shared.services.menu_service import get_menu
from qrdine_shared.services.order_service import list_orders_for_table
from qrdine_shared.services.table_service import get_table
from qrdine_shared.validation import ValidationError

logger = get_logger(__name__)

_OPEN_STATUS_VALUES = {status.value for status in OPEN_ORDER_STATUSES}


def _find_line(cart: list[dict[str, Any]], product_id: str) -> dict[str, Any] | None:
    return next((line for line in cart if line["id"] == product_id), None)


def add_to_cart(cart: list[dict[str, Any]], product: dict[str, Any]) -> list[dict[str, Any]]:
    """Add one unit of ``product``; a new line starts at quantity 1 with no note."""
    if not product.get("available", True):
        raise ValidationError(f"Món '{product.get('name')}' hiện đã hết")

    existing = _find_line(cart, product["id"])
    if existing:
        return [
            {**line, "quantity": line["quantity"] + 1} if line is existing else line
            for line in cart
        ]
    return cart + [
        {
            "id": product["id"],
            "name": product["name"],
            "price": int(product["price"]),
            "category": product.get("category") or "",
            "quantity": 1,
            "note": "",
        }
    ]


def remove_one(cart: list[dict[str, Any]], product_id: str) -> list[dict[str, Any]]:
    """Take one unit off a line; the line disappears when it reaches zero."""
    result = []
    for line in cart:
        if line["id"] != product_id:
            result.append(line)
        elif line["quantity"] > 1:
            result.append({**line, "quantity": line["quantity"] - 1})
    return result


def delete_line(cart: list[dict[str, Any]], product_id: str) -> list[dict[str, Any]]:
    return [line for line in cart if line["id"] != product_id]


def set_note(cart: list[dict[str, Any]], product_id: str, note: str) -> list[dict[str, Any]]:
    return [{**line, "note": note} if line["id"] == product_id else line for line in cart]


def hydrate_cart(cart: list[dict[str, Any]], products: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Rebuild full cart lines from cookie-held ``{id, quantity, note}`` lines.

    Name, price and category come from ``products``; lines whose product is
    gone or no longer available are dropped.
    """
    by_id = {product["id"]: product for product in products}
    lines = []
    for line in cart:
        product = by_id.get(line["id"])
        if product is None:
            continue
        lines.append(
            {
                "id": product["id"],
                "name": product["name"],
                "price": int(product["price"]),
                "category": product.get("category") or "",
                "quantity": int(line["quantity"]),
                "note": line.get("note") or "",
            }
        )
    return lines


def cart_total(cart: list[dict[str, Any]]) -> int:
    return sum(int(line["price"]) * int(line["quantity"]) for line in cart)


def _upsert(rows: list[dict[str, Any]], row: dict[str, Any]) -> list[dict[str, Any]]:
    if any(existing["id"] == row["id"] for existing in rows):
        return [row if existing["id"] == row["id"] else existing for existing in rows]
    return [row] + rows


def _remove(rows: list[dict[str, Any]], row_id: str | None) -> list[dict[str, Any]]:
    return [existing for existing in rows if existing["id"] != row_id]


class CustomerOrderingView:
    """
    Working set of the ordering screen: table, menu, cart and the orders this
    customer placed at this table.

    ``load`` reads everything once; afterwards ``apply_event`` folds single
    change-feed rows from the ``menu`` and ``orders:table:<id>`` topics into
    the working set instead of re-reading it.
    """

    def __init__(self, table_id: str, session: TableSession, remembered_name: str | None = None):
        self.table_id = table_id
        self.session = session
        self.remembered_name = remembered_name
        self.table: dict[str, Any] | None = None
        self.categories: list[dict[str, Any]] = []
        self.products: list[dict[str, Any]] = []
        self.orders: list[dict[str, Any]] = []
        self.cursors: dict[str, int] = {}

    @property
    def customer_name(self) -> str:
        return self.session.name or self.remembered_name or ""

    @property
    def orders_topic(self) -> str:
        return table_orders_topic(self.table_id)

    def load(self) -> CustomerOrderingView:
        # Cursors first so an event committed while loading is replayed, not lost
        self.cursors = {
            TOPIC_MENU: latest_event_id(TOPIC_MENU),
            self.orders_topic: latest_event_id(self.orders_topic),
        }
        self.table = get_table(self.table_id)
        menu = get_menu()
        self.categories = menu["categories"]
        self.products = menu["products"]
        self.orders = (
            list_orders_for_table(self.table_id, self.customer_name) if self.customer_name else []
        )
        return self

    def apply_event(self, event: dict[str, Any]) -> bool:
        """
        Apply one committed change-feed event. Returns True when the working
        set changed.
        """
        topic = event.get("topic")
        entity = event.get("entity")
        change = event.get("eventType")
        payload = event.get("payload") or {}

        if topic in self.cursors:
            self.cursors[topic] = max(self.cursors[topic], int(event.get("id") or 0))

        if topic == TOPIC_MENU and entity == "product":
            before = self.products
            if change == ChangeType.DELETE.value or not payload.get("available", True):
                self.products = _remove(self.products, event.get("recordId"))
            else:
                self.products = _upsert(self.products, payload)
            return self.products != before

        if topic == TOPIC_MENU and entity == "category":
            before = self.categories
            if change == ChangeType.DELETE.value:
                self.categories = _remove(self.categories, event.get("recordId"))
            else:
                self.categories = sorted(
                    _upsert(self.categories, payload),
                    key=lambda category: (category.get("order") or 0, category["name"]),
                )
            return self.categories != before

        if topic == self.orders_topic and entity == "order":
            if payload.get("customerName") != self.customer_name:
                return False
            before = self.orders
            self.orders = _upsert(self.orders, payload)
            return self.orders != before

        return False

    def active_order(self) -> dict[str, Any] | None:
        """
        The order shown on the status screen.

        The order placed from this browser wins unless it was dismissed; after
        that the first open order of this customer is shown.
        """
        dismissed = self.session.dismissed_order_id
        placed = self.session.placed_order_id
        if placed and placed != dismissed:
            existing = next((order for order in self.orders if order["id"] == placed), None)
            if existing:
                return existing
        return next(
            (
                order
                for order in self.orders
                if order["status"] in _OPEN_STATUS_VALUES and order["id"] != dismissed
            ),
            None,
        )

    def filtered_products(self, category: str = ALL_CATEGORIES, search: str = "") -> list[dict[str, Any]]:
        needle = (search or "").strip().lower()
        return [
            product
            for product in self.products
            if product.get("available", True)
            and (category in (None, "", ALL_CATEGORIES) or product.get("category") == category)
            and needle in product["name"].lower()
        ]

    def to_dict(self, category: str = ALL_CATEGORIES, search: str = "") -> dict[str, Any]:
        return {
            "table": self.table,
            "customerName": self.customer_name,
            "joined": self.session.joined,
            "cart": self.session.cart,
            "cartTotal": cart_total(self.session.cart),
            "categories": [ALL_CATEGORIES] + [c["name"] for c in self.categories],
            "products": self.filtered_products(category, search),
            "orders": self.orders,
            "activeOrder": self.active_order(),
            "cursors": self.cursors,
        }
