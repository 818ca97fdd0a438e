from __future__ import annotations

from datetime import datetime, timezone

import pytest

from qrdine_shared.services.stats_service import (
    compute_stats,
    dashboard_summary,
    lookup_revenue,
    top_selling,
)

TZ = "Asia/Ho_Chi_Minh"


def _ms(*args) -> int:
    return int(datetime(*args, tzinfo=timezone.utc).timestamp() * 1000)


def _order(order_id, total, created_at, status="COMPLETED", items=None):
    return {
        "id": order_id,
        "tableId": "1",
        "customerName": "An",
        "totalAmount": total,
        "status": status,
        "createdAt": created_at,
        "items": items or [],
    }


def _item(name, quantity, price=10000, category="Món chính"):
    return {"id": name, "name": name, "price": price, "quantity": quantity, "category": category}


def test_empty_order_list_gives_zeroes():
    stats = compute_stats([], TZ)

    assert stats["totalRevenue"] == 0
    assert stats["totalOrders"] == 0
    assert stats["avgOrderValue"] == 0
    assert stats["topSelling"] == []
    assert stats["revenueByHour"] == []
    assert stats["revenueByYear"] == []


def test_cancelled_orders_never_count():
    orders = [
        _order("a", 100000, _ms(2024, 5, 1, 3), items=[_item("Phở", 2)]),
        _order("b", 50000, _ms(2024, 5, 1, 4), status="CANCELLED", items=[_item("Trà đá", 9)]),
        _order("c", 20000, _ms(2024, 5, 1, 5), status="PENDING", items=[_item("Phở", 1)]),
    ]

    stats = compute_stats(orders, TZ)

    assert stats["totalRevenue"] == 120000
    assert stats["totalOrders"] == 2
    assert stats["avgOrderValue"] == 60000
    assert stats["topSelling"] == [{"name": "Phở", "quantity": 3}]


def test_buckets_use_restaurant_timezone_labels():
    # 17:30 UTC on 31/12/2023 is 00:30 on 1/1/2024 in Ho Chi Minh City
    orders = [_order("a", 40000, _ms(2023, 12, 31, 17, 30))]

    stats = compute_stats(orders, TZ)

    assert stats["revenueByHour"] == [{"hour": "0:00", "amount": 40000}]
    assert stats["revenueByDay"] == [{"date": "1/1/2024", "amount": 40000}]
    assert stats["revenueByMonth"] == [{"month": "01/2024", "amount": 40000}]
    assert stats["revenueByYear"] == [{"year": "2024", "amount": 40000}]


def test_buckets_are_sorted_chronologically_not_alphabetically():
    orders = [
        _order("a", 1000, _ms(2024, 11, 2, 3)),  # 10:00 local, 2/11
        _order("b", 2000, _ms(2024, 2, 10, 2)),  # 9:00 local, 10/2
        _order("c", 3000, _ms(2023, 12, 5, 14)),  # 21:00 local, 5/12/2023
    ]

    stats = compute_stats(orders, TZ)

    assert [b["hour"] for b in stats["revenueByHour"]] == ["9:00", "10:00", "21:00"]
    assert [b["date"] for b in stats["revenueByDay"]] == ["5/12/2023", "10/2/2024", "2/11/2024"]
    assert [b["month"] for b in stats["revenueByMonth"]] == ["12/2023", "02/2024", "11/2024"]
    assert [b["year"] for b in stats["revenueByYear"]] == ["2023", "2024"]


def test_bucket_amounts_add_up_to_total_revenue():
    orders = [
        _order("a", 55000, _ms(2024, 5, 1, 3)),
        _order("b", 45000, _ms(2024, 5, 1, 3, 40)),
        _order("c", 30000, _ms(2024, 6, 2, 8)),
    ]

    stats = compute_stats(orders, TZ)

    for key in ("revenueByHour", "revenueByDay", "revenueByMonth", "revenueByYear"):
        assert sum(bucket["amount"] for bucket in stats[key]) == stats["totalRevenue"]
    assert stats["revenueByHour"][0] == {"hour": "10:00", "amount": 100000}


def test_top_selling_keeps_first_seen_order_on_ties_and_limits_to_five():
    orders = [
        _order(
            "a",
            0,
            _ms(2024, 1, 1),
            items=[_item("B", 2), _item("A", 2), _item("C", 5), _item("D", 1)],
        ),
        _order("b", 0, _ms(2024, 1, 2), items=[_item("E", 1), _item("F", 1), _item("G", 1)]),
    ]

    ranked = top_selling(orders)

    assert [row["name"] for row in ranked] == ["C", "B", "A", "D", "E"]


def test_lookup_revenue_by_date_month_and_year():
    orders = [
        _order("a", 10000, _ms(2024, 3, 15, 2)),
        _order("b", 20000, _ms(2024, 3, 20, 2)),
        _order("c", 40000, _ms(2024, 7, 1, 2)),
        _order("d", 99000, _ms(2024, 3, 15, 2), status="CANCELLED"),
    ]

    assert lookup_revenue(orders, "date", "2024-03-15", TZ) == {"revenue": 10000, "count": 1}
    assert lookup_revenue(orders, "month", "2024-03", TZ) == {"revenue": 30000, "count": 2}
    assert lookup_revenue(orders, "year", "2024", TZ) == {"revenue": 70000, "count": 3}
    assert lookup_revenue(orders, "year", "2023", TZ) == {"revenue": 0, "count": 0}


def test_lookup_revenue_rejects_unknown_mode():
    with pytest.raises(ValueError):
        lookup_revenue([_order("a", 1, _ms(2024, 1, 1))], "week", "2024-01", TZ)


def test_dashboard_summary_counts_today_pending_and_occupied():
    # the cancelled order of today counts in neither revenue nor orders
    now = _ms(2024, 5, 1, 5)
    orders = [
        _order("a", 50000, _ms(2024, 5, 1, 2), status="PENDING"),
        _order("b", 30000, _ms(2024, 5, 1, 3), status="CANCELLED"),
        _order("c", 70000, _ms(2024, 4, 29, 3)),
    ]
    tables = [
        {"id": "1", "name": "Bàn 1", "isOccupied": True},
        {"id": "2", "name": "Bàn 2", "isOccupied": False},
    ]

    summary = dashboard_summary(orders, tables, TZ, now=now)

    assert summary["todayRevenue"] == 50000
    assert summary["todayOrders"] == 1
    assert summary["pendingOrders"] == 1
    assert summary["occupiedTables"] == 1


def test_stats_are_idempotent_and_consistent():
    orders = [
        _order("a", 55000, _ms(2024, 5, 1, 3), items=[_item("Phở", 1)]),
        _order("b", 35000, _ms(2024, 5, 2, 3), items=[_item("Gỏi", 1)]),
        _order("c", 20000, _ms(2024, 5, 3, 3), items=[_item("Chè", 1)]),
        _order("d", 10000, _ms(2024, 5, 3, 4), status="CANCELLED"),
    ]

    first = compute_stats(orders, TZ)
    second = compute_stats(orders, TZ)

    assert first == second
    assert first["totalOrders"] == 3
    assert first["avgOrderValue"] * first["totalOrders"] == pytest.approx(first["totalRevenue"])
