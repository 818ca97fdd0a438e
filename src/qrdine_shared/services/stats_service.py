"""
Sales statistics.

``compute_stats`` is a pure function over serialized orders so it can be
called on any order list (store snapshot, filtered list, test fixture).
Cancelled orders never count.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any

from qrdine_shared.constants import TOP_SELLING_LIMIT, OrderStatus
from qrdine_shared.datetime_utils import from_epoch_ms, now_ms
from qrdine_shared.services.order_service import list_orders

DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"


def _valid_orders(orders: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [o for o in orders if o.get("status") != OrderStatus.CANCELLED.value]


def _local(order: dict[str, Any], timezone_name: str) -> datetime:
    return from_epoch_ms(order["createdAt"], timezone_name)


def hour_label(moment: datetime) -> str:
    return f"{moment.hour}:00"


def day_label(moment: datetime) -> str:
    return f"{moment.day}/{moment.month}/{moment.year}"


def month_label(moment: datetime) -> str:
    return f"{moment.month:02d}/{moment.year}"


def year_label(moment: datetime) -> str:
    return str(moment.year)


def _hour_key(label: str) -> int:
    return int(label.split(":")[0])


def _day_key(label: str) -> tuple[int, int, int]:
    day, month, year = (int(part) for part in label.split("/"))
    return year, month, day


def _month_key(label: str) -> tuple[int, int]:
    month, year = (int(part) for part in label.split("/"))
    return year, month


def _bucket(
    orders: list[dict[str, Any]],
    timezone_name: str,
    label_fn,
    sort_key,
    field: str,
) -> list[dict[str, Any]]:
    totals: dict[str, int] = defaultdict(int)
    for order in orders:
        totals[label_fn(_local(order, timezone_name))] += order.get("totalAmount", 0)
    return [
        {field: label, "amount": amount}
        for label, amount in sorted(totals.items(), key=lambda kv: sort_key(kv[0]))
    ]


def top_selling(orders: list[dict[str, Any]], limit: int = TOP_SELLING_LIMIT) -> list[dict[str, Any]]:
    """
    Best sellers by summed quantity. Ties keep the order in which the product
    names were first seen.
    """
    counts: dict[str, int] = {}
    for order in _valid_orders(orders):
        for item in order.get("items", []):
            counts[item["name"]] = counts.get(item["name"], 0) + item.get("quantity", 0)
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [{"name": name, "quantity": quantity} for name, quantity in ranked[:limit]]


def compute_stats(
    orders: list[dict[str, Any]], timezone_name: str = DEFAULT_TIMEZONE
) -> dict[str, Any]:
    """
    Aggregate revenue figures over ``orders``.

    Buckets are labelled in the restaurant timezone and sorted
    chronologically: hours as ``H:00``, days as ``D/M/YYYY``, months as
    ``MM/YYYY`` and years as ``YYYY``.
    """
    valid = _valid_orders(orders)
    total_revenue = sum(o.get("totalAmount", 0) for o in valid)
    return {
        "totalRevenue": total_revenue,
        "totalOrders": len(valid),
        "avgOrderValue": total_revenue / len(valid) if valid else 0,
        "topSelling": top_selling(valid),
        "revenueByHour": _bucket(valid, timezone_name, hour_label, _hour_key, "hour"),
        "revenueByDay": _bucket(valid, timezone_name, day_label, _day_key, "date"),
        "revenueByMonth": _bucket(valid, timezone_name, month_label, _month_key, "month"),
        "revenueByYear": _bucket(valid, timezone_name, year_label, int, "year"),
    }


def revenue_by_category(orders: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Line-item revenue grouped by the category snapshot stored on each item."""
    totals: dict[str, int] = {}
    for order in _valid_orders(orders):
        for item in order.get("items", []):
            category = item.get("category") or ""
            totals[category] = totals.get(category, 0) + item["price"] * item["quantity"]
    return [{"name": name, "value": value} for name, value in totals.items()]


def _matches_period(moment: datetime, mode: str, value: str) -> bool:
    if mode == "date":
        return moment.strftime("%Y-%m-%d") == value[:10]
    if mode == "month":
        return moment.strftime("%Y-%m") == value[:7]
    if mode == "year":
        return str(moment.year) == value[:4]
    raise ValueError(f"Unknown lookup mode: {mode}")


def lookup_revenue(
    orders: list[dict[str, Any]],
    mode: str,
    value: str,
    timezone_name: str = DEFAULT_TIMEZONE,
) -> dict[str, int]:
    """Revenue and order count for one local date (YYYY-MM-DD), month (YYYY-MM) or year."""
    matched = [
        o for o in _valid_orders(orders) if _matches_period(_local(o, timezone_name), mode, value)
    ]
    return {"revenue": sum(o.get("totalAmount", 0) for o in matched), "count": len(matched)}


def dashboard_summary(
    orders: list[dict[str, Any]],
    tables: list[dict[str, Any]],
    timezone_name: str = DEFAULT_TIMEZONE,
    now: int | None = None,
) -> dict[str, Any]:
    """Headline figures of the dashboard home screen."""
    today = from_epoch_ms(now if now is not None else now_ms(), timezone_name).strftime("%Y-%m-%d")
    todays = lookup_revenue(orders, "date", today, timezone_name)
    return {
        "todayRevenue": todays["revenue"],
        "todayOrders": todays["count"],
        "pendingOrders": sum(1 for o in orders if o.get("status") == OrderStatus.PENDING.value),
        "occupiedTables": sum(1 for t in tables if t.get("isOccupied")),
        "categoryRevenue": revenue_by_category(orders),
    }


def get_stats(timezone_name: str = DEFAULT_TIMEZONE) -> dict[str, Any]:
    """Statistics over every stored order."""
    return compute_stats(list_orders(), timezone_name)
