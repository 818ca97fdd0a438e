"""
Orders API - listing, status workflow and receipts.
"""

import io
from http import HTTPStatus

from flask import Blueprint, Response, current_app, jsonify, render_template, request, send_file

from qrdine_admin.services.dashboard_view import with_actions
from qrdine_shared.audit_middleware import audit_action
from qrdine_shared.logging_config import get_logger
from qrdine_shared.schemas import OrderFilterParams, UpdateOrderStatusRequest
from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.order_service import OrderNotFoundError, filter_orders, get_order, transition_order
from qrdine_shared.services.receipt_service import (
    ReceiptPDFService,
    build_receipt,
    render_receipt_text,
    short_order_id,
)
from qrdine_shared.services.settings_service import get_settings
from qrdine_shared.services.stats_service import DEFAULT_TIMEZONE
from qrdine_shared.session_context import get_staff_context, login_required

orders_bp = Blueprint("admin_orders", __name__)
logger = get_logger(__name__)


def _timezone() -> str:
    return current_app.config.get("STATS_TIMEZONE", DEFAULT_TIMEZONE)


def _load_receipt(order_id: str) -> dict:
    order = get_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return build_receipt(order, get_settings(), _timezone())


@orders_bp.get("/orders")
@login_required
def list_orders_endpoint():
    """
    Orders newest first.

    Query params:
        status: PENDING|CONFIRMED|PREPARING|COMPLETED|CANCELLED|ALL
        date: YYYY-MM-DD, month: YYYY-MM or year: YYYY (restaurant timezone)
    """
    filters = OrderFilterParams.model_validate(request.args.to_dict())
    orders = filter_orders(filters, _timezone())
    return jsonify(success_response([with_actions(order) for order in orders])), HTTPStatus.OK


@orders_bp.get("/orders/<order_id>")
@login_required
def get_order_endpoint(order_id: str):
    order = get_order(order_id)
    if order is None:
        return jsonify(error_response("Không tìm thấy đơn hàng")), HTTPStatus.NOT_FOUND
    return jsonify(success_response(with_actions(order))), HTTPStatus.OK


@orders_bp.post("/orders/<order_id>/status")
@login_required
def update_status(order_id: str):
    """
    Move an order along the workflow.

    409 when the move is not offered from the current status, 404 for an
    unknown order.
    """
    payload = UpdateOrderStatusRequest.model_validate(request.get_json(silent=True) or {})
    order = transition_order(order_id, payload.status, get_staff_context().actor_name)
    audit_action("ORDER_STATUS", f"{short_order_id(order_id)}->{payload.status}")
    return jsonify(
        success_response(
            with_actions(order),
            f"Đã cập nhật đơn hàng #{short_order_id(order_id)} thành {order['statusDisplay']}",
        )
    ), HTTPStatus.OK


@orders_bp.get("/orders/<order_id>/receipt")
@login_required
def get_receipt_html(order_id: str):
    """Printable 80 mm receipt that opens the browser print dialog."""
    return render_template("receipt.html", receipt=_load_receipt(order_id))


@orders_bp.get("/orders/<order_id>/receipt.txt")
@login_required
def get_receipt_text(order_id: str):
    text = render_receipt_text(_load_receipt(order_id))
    return Response(text, mimetype="text/plain; charset=utf-8")


@orders_bp.get("/orders/<order_id>/receipt.pdf")
@login_required
def get_receipt_pdf(order_id: str):
    receipt = _load_receipt(order_id)
    pdf_bytes = ReceiptPDFService().generate_pdf(receipt)
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype="application/pdf",
        as_attachment=False,
        download_name=f"receipt-{receipt['shortId']}.pdf",
    )
