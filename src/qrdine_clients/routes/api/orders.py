"""
Orders endpoints for clients API.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from qrdine_clients.routes.api.tables import open_table_session, require_joined, view_response
from qrdine_clients.services.ordering_view import cart_total
from qrdine_shared.logging_config import get_logger
from qrdine_shared.schemas import PlaceOrderRequest
from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.order_service import create_order, list_orders_for_table
from qrdine_shared.validation import ValidationError

logger = get_logger(__name__)

orders_bp = Blueprint("client_orders", __name__)


@orders_bp.post("/tables/<table_id>/orders")
def place_order(table_id: str):
    """
    Place the cart of this table session as one order.

    The client may send the total it displayed as ``totalAmount``; it must
    match the cart. On success the cart is emptied and the new order becomes
    the one shown on the status screen.
    """
    payload = PlaceOrderRequest.model_validate(request.get_json(silent=True) or {})
    table_session, expired = open_table_session(table_id)
    require_joined(table_session)
    if not table_session.cart:
        raise ValidationError("Giỏ hàng đang trống")

    total = payload.total_amount if payload.total_amount is not None else cart_total(table_session.cart)
    order = create_order(table_id, table_session.name, table_session.cart, total)
    if order is None:
        return jsonify(error_response("Không thể đặt món, vui lòng thử lại")), HTTPStatus.INTERNAL_SERVER_ERROR

    table_session.cart = []
    table_session.placed_order_id = order["id"]
    table_session.dismissed_order_id = None
    logger.info(f"Order {order['id']} placed from table {table_id}")
    return view_response(table_session, expired, HTTPStatus.CREATED, {"order": order})


@orders_bp.get("/tables/<table_id>/orders")
def list_my_orders(table_id: str):
    """Order history of the customer holding this table session."""
    table_session, _ = open_table_session(table_id)
    if not table_session.name:
        return jsonify(success_response([])), HTTPStatus.OK
    return jsonify(success_response(list_orders_for_table(table_id, table_session.name))), HTTPStatus.OK


@orders_bp.post("/tables/<table_id>/orders/<order_id>/dismiss")
def dismiss_order(table_id: str, order_id: str):
    """Hide an order from the status screen so the customer can order again."""
    table_session, expired = open_table_session(table_id)
    table_session.dismissed_order_id = order_id
    return view_response(table_session, expired)
