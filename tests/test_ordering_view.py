import pytest

from qrdine_clients.services.ordering_view import (
    CustomerOrderingView,
    add_to_cart,
    cart_total,
    delete_line,
    hydrate_cart,
    remove_one,
    set_note,
)
from qrdine_clients.utils.customer_session import TableSession
from qrdine_shared.services.order_service import create_order, transition_order
from qrdine_shared.validation import ValidationError

PHO = {"id": "p1", "name": "Phở bò tái", "price": 55000, "category": "Món chính", "available": True}
TRA = {"id": "p2", "name": "Trà đá", "price": 5000, "category": "Đồ uống", "available": True}


def test_add_to_cart_starts_at_one_and_then_increments():
    cart = add_to_cart([], PHO)
    assert cart == [
        {"id": "p1", "name": "Phở bò tái", "price": 55000, "category": "Món chính", "quantity": 1, "note": ""}
    ]

    cart = add_to_cart(set_note(cart, "p1", "không hành"), PHO)

    assert cart[0]["quantity"] == 2
    assert cart[0]["note"] == "không hành"


def test_add_to_cart_refuses_unavailable_product():
    with pytest.raises(ValidationError):
        add_to_cart([], {**PHO, "available": False})


def test_cart_functions_do_not_mutate_their_input():
    cart = add_to_cart([], PHO)
    snapshot = [dict(line) for line in cart]

    add_to_cart(cart, PHO)
    remove_one(cart, "p1")
    set_note(cart, "p1", "x")

    assert cart == snapshot


def test_remove_one_drops_line_at_zero():
    cart = add_to_cart(add_to_cart(add_to_cart([], PHO), PHO), TRA)

    cart = remove_one(cart, "p1")
    assert [(line["id"], line["quantity"]) for line in cart] == [("p1", 1), ("p2", 1)]

    cart = remove_one(cart, "p1")
    assert [line["id"] for line in cart] == ["p2"]
    assert remove_one(cart, "missing") == cart


def test_delete_line_and_total():
    cart = add_to_cart(add_to_cart(add_to_cart([], PHO), PHO), TRA)

    assert cart_total(cart) == 115000
    assert cart_total(delete_line(cart, "p1")) == 5000
    assert cart_total([]) == 0


def test_hydrate_cart_reads_names_and_prices_from_the_menu():
    stored = [
        {"id": "p2", "quantity": 3, "note": ""},
        {"id": "gone", "quantity": 1, "note": ""},
        {"id": "p1", "quantity": 1, "note": "ít hành"},
    ]

    cart = hydrate_cart(stored, [PHO, {**TRA, "price": 6000}])

    assert cart == [
        {"id": "p2", "name": "Trà đá", "price": 6000, "category": "Đồ uống", "quantity": 3, "note": ""},
        {"id": "p1", "name": "Phở bò tái", "price": 55000, "category": "Món chính", "quantity": 1, "note": "ít hành"},
    ]


def _view(table_id="1", **session_fields):
    session = TableSession(table_id=table_id, name="An", joined=True, **session_fields)
    return CustomerOrderingView(table_id, session).load()


def test_load_and_filter_menu(app):
    view = _view()
    state = view.to_dict()

    assert state["table"] == {"id": "1", "name": "Bàn 1", "isOccupied": False}
    assert state["categories"] == ["Tất cả", "Món chính", "Món phụ", "Đồ uống", "Tráng miệng"]
    assert len(state["products"]) == 6
    assert {p["name"] for p in view.filtered_products("Đồ uống")} == {"Trà đá", "Cà phê sữa đá"}
    assert [p["name"] for p in view.filtered_products(search="PHỞ")] == ["Phở bò tái"]
    assert view.filtered_products("Đồ uống", "phở") == []


def test_product_events_update_and_hide_products(app, products):
    view = _view()
    pho = products["Phở bò tái"]

    changed = view.apply_event(
        {
            "id": view.cursors["menu"] + 1,
            "topic": "menu",
            "entity": "product",
            "eventType": "UPDATE",
            "recordId": pho["id"],
            "payload": {**pho, "price": 60000},
        }
    )
    assert changed is True
    assert next(p for p in view.products if p["id"] == pho["id"])["price"] == 60000

    view.apply_event(
        {
            "id": view.cursors["menu"] + 1,
            "topic": "menu",
            "entity": "product",
            "eventType": "UPDATE",
            "recordId": pho["id"],
            "payload": {**pho, "available": False},
        }
    )
    assert pho["id"] not in [p["id"] for p in view.products]
    assert view.cursors["menu"] >= 2


def test_category_events_keep_display_order(app):
    view = _view()

    view.apply_event(
        {
            "id": 1,
            "topic": "menu",
            "entity": "category",
            "eventType": "INSERT",
            "recordId": "new",
            "payload": {"id": "new", "name": "Khai vị", "order": 0},
        }
    )

    assert view.to_dict()["categories"][:2] == ["Tất cả", "Khai vị"]


def test_order_events_only_for_this_customer(app, products, make_line):
    view = _view()
    other = create_order("1", "Bình", [make_line(products["Trà đá"])])

    changed = view.apply_event(
        {"id": 1, "topic": "orders:table:1", "entity": "order", "eventType": "INSERT",
         "recordId": other["id"], "payload": other}
    )

    assert changed is False
    assert view.orders == []


def test_active_order_follows_placed_then_dismissed(app, products, make_line):
    first = create_order("1", "An", [make_line(products["Trà đá"])])
    second = create_order("1", "An", [make_line(products["Chè ba màu"])])

    view = _view(placed_order_id=first["id"])
    assert view.active_order()["id"] == first["id"]

    view = _view(placed_order_id=first["id"], dismissed_order_id=first["id"])
    assert view.active_order()["id"] == second["id"]

    transition_order(second["id"], "CANCELLED")
    view = _view(placed_order_id=first["id"], dismissed_order_id=first["id"])
    assert view.active_order() is None
