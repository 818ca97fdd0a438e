"""
Table session endpoints for clients API: screen state, join and cart.

Every call that changes the table session answers with the full screen state
and rewrites the ``qrdine_table_<id>`` cookie.
"""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, abort, jsonify, make_response, request

from qrdine_clients.services.ordering_view import (
    CustomerOrderingView,
    add_to_cart,
    delete_line,
    hydrate_cart,
    remove_one,
    set_note,
)
from qrdine_clients.utils.customer_session import (
    TableSession,
    clear_table_session,
    load_customer_name,
    load_table_session,
    save_customer_name,
    save_table_session,
)
from qrdine_shared.constants import ALL_CATEGORIES
from qrdine_shared.logging_config import get_logger
from qrdine_shared.schemas import CartAddRequest, CartNoteRequest, JoinTableRequest
from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.menu_service import get_product, list_products
from qrdine_shared.services.table_service import get_table
from qrdine_shared.validation import ValidationError, validate_table_id

logger = get_logger(__name__)

tables_bp = Blueprint("client_tables", __name__)


def open_table_session(table_id: str) -> tuple[TableSession, bool]:
    """
    Current table session, or a fresh one pre-filled with the remembered name.

    Cart lines are filled in from the current menu. Returns
    ``(session, expired)``; 404 when the table does not exist.
    """
    validate_table_id(table_id)
    if get_table(table_id) is None:
        abort(HTTPStatus.NOT_FOUND, description="Không tìm thấy bàn")
    table_session, expired = load_table_session(table_id)
    if table_session is None:
        table_session = TableSession(table_id=table_id, name=load_customer_name() or "")
    elif table_session.cart:
        table_session.cart = hydrate_cart(table_session.cart, list_products(available_only=True))
    return table_session, expired


def require_joined(table_session: TableSession) -> None:
    if not table_session.joined or not table_session.name:
        raise ValidationError("Vui lòng nhập tên trước khi gọi món")


def view_response(
    table_session: TableSession,
    expired: bool = False,
    status: int = HTTPStatus.OK,
    extra: dict | None = None,
):
    """Screen state as JSON with the table session cookie brought up to date."""
    view = CustomerOrderingView(table_session.table_id, table_session, load_customer_name()).load()
    payload = view.to_dict(
        request.args.get("category") or ALL_CATEGORIES, request.args.get("search") or ""
    )
    if extra:
        payload.update(extra)

    response = make_response(jsonify(success_response(payload)), status)
    if table_session.joined or table_session.cart:
        save_table_session(response, table_session)
    elif expired:
        clear_table_session(response, table_session.table_id)
    return response


@tables_bp.get("/tables/<table_id>/view")
def get_table_view(table_id: str):
    """
    Everything the ordering screen needs for one table.

    Query params ``category`` and ``search`` narrow the product list.
    """
    table_session, expired = open_table_session(table_id)
    return view_response(table_session, expired)


@tables_bp.post("/tables/<table_id>/join")
def join_table(table_id: str):
    payload = JoinTableRequest.model_validate(request.get_json(silent=True) or {})
    table_session, expired = open_table_session(table_id)
    table_session.name = payload.name
    table_session.joined = True

    response = view_response(table_session, expired)
    save_customer_name(response, payload.name)
    logger.info(f"Customer joined table {table_id}")
    return response


@tables_bp.post("/tables/<table_id>/cart/items")
def add_cart_item(table_id: str):
    payload = CartAddRequest.model_validate(request.get_json(silent=True) or {})
    table_session, expired = open_table_session(table_id)
    require_joined(table_session)

    product = get_product(payload.product_id)
    if product is None:
        return jsonify(error_response("Không tìm thấy món")), HTTPStatus.NOT_FOUND
    table_session.cart = add_to_cart(table_session.cart, product)
    return view_response(table_session, expired)


@tables_bp.post("/tables/<table_id>/cart/items/<product_id>/decrement")
def decrement_cart_item(table_id: str, product_id: str):
    table_session, expired = open_table_session(table_id)
    table_session.cart = remove_one(table_session.cart, product_id)
    return view_response(table_session, expired)


@tables_bp.patch("/tables/<table_id>/cart/items/<product_id>")
def update_cart_note(table_id: str, product_id: str):
    payload = CartNoteRequest.model_validate(request.get_json(silent=True) or {})
    table_session, expired = open_table_session(table_id)
    table_session.cart = set_note(table_session.cart, product_id, payload.note)
    return view_response(table_session, expired)


@tables_bp.delete("/tables/<table_id>/cart/items/<product_id>")
def delete_cart_item(table_id: str, product_id: str):
    table_session, expired = open_table_session(table_id)
    table_session.cart = delete_line(table_session.cart, product_id)
    return view_response(table_session, expired)


@tables_bp.delete("/tables/<table_id>/cart")
def clear_cart(table_id: str):
    table_session, expired = open_table_session(table_id)
    table_session.cart = []
    return view_response(table_session, expired)
