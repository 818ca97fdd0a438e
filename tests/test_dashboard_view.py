from qrdine_admin.services.dashboard_view import (
    AdminDashboardView,
    new_order_alert,
    newest_order,
    with_actions,
)
from qrdine_shared.realtime import read_events
from qrdine_shared.services.order_service import create_order


def _order(order_id, created_at, status="PENDING", table_id="2"):
    return {"id": order_id, "tableId": table_id, "status": status, "createdAt": created_at}


def test_newest_order():
    assert newest_order([]) is None
    assert newest_order([_order("a", 1), _order("b", 3), _order("c", 2)])["id"] == "b"


def test_no_alert_on_first_load_or_same_order():
    orders = [_order("a", 1), _order("b", 2)]

    assert new_order_alert(orders, None) is None
    assert new_order_alert(orders, "b") is None


def test_alert_for_unseen_pending_order():
    orders = [_order("a", 1), _order("b", 2, table_id="4")]

    alert = new_order_alert(orders, "a")

    assert alert == {"orderId": "b", "tableId": "4", "message": "Đơn mới từ Bàn 4!"}


def test_no_alert_when_newest_is_no_longer_pending():
    orders = [_order("a", 1), _order("b", 2, status="CONFIRMED")]

    assert new_order_alert(orders, "a") is None


def test_with_actions():
    assert [a["action"] for a in with_actions(_order("a", 1))["actions"]] == ["confirm", "cancel"]
    assert with_actions(_order("a", 1, status="CANCELLED"))["actions"] == []


def test_load_reads_everything(app):
    view = AdminDashboardView({"id": "x", "name": "Quản trị viên"}).load()
    state = view.to_dict()

    assert state["isConnected"] is True
    assert len(state["products"]) == 6
    assert len(state["tables"]) == 6
    assert state["orders"] == []
    assert state["pendingCount"] == 0
    assert state["newestOrderId"] is None
    assert state["alert"] is None
    assert set(state["cursors"]) == {"orders", "menu", "tables"}


def test_apply_order_events_updates_stats_and_raises_alert(app, products, make_line):
    first = create_order("1", "An", [make_line(products["Trà đá"], quantity=2)])
    view = AdminDashboardView(None).load()
    cursor = view.cursors["orders"]

    second = create_order("2", "Bình", [make_line(products["Phở bò tái"])])
    alerts = [view.apply_event(event) for event in read_events("orders", after_id=cursor)]

    assert alerts[-1]["orderId"] == second["id"]
    assert alerts[-1]["message"] == "Đơn mới từ Bàn 2!"
    assert [o["id"] for o in view.orders] == [second["id"], first["id"]]
    assert view.stats["totalRevenue"] == 65000
    assert view.summary["pendingOrders"] == 2
    assert view.cursors["orders"] > cursor


def test_apply_table_events(app, products, make_line):
    view = AdminDashboardView(None).load()
    cursor = view.cursors["tables"]

    create_order("3", "An", [make_line(products["Trà đá"])])
    for event in read_events("tables", after_id=cursor):
        view.apply_event(event)

    assert next(t for t in view.tables if t["id"] == "3")["isOccupied"] is True
    assert view.summary["occupiedTables"] == 1
