"""
Stats API - sales statistics and period lookups.
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.order_service import list_orders
from qrdine_shared.services.stats_service import DEFAULT_TIMEZONE, get_stats, lookup_revenue
from qrdine_shared.session_context import login_required

stats_bp = Blueprint("admin_stats", __name__)

LOOKUP_MODES = ("date", "month", "year")


def _timezone() -> str:
    return current_app.config.get("STATS_TIMEZONE", DEFAULT_TIMEZONE)


@stats_bp.get("/stats")
@login_required
def get_stats_endpoint():
    """Revenue totals, top sellers and revenue by hour, day, month and year."""
    return jsonify(success_response(get_stats(_timezone()))), HTTPStatus.OK


@stats_bp.get("/stats/lookup")
@login_required
def lookup_stats():
    """
    Revenue and order count for one period.

    Query params:
        mode: date|month|year
        value: YYYY-MM-DD, YYYY-MM or YYYY
    """
    mode = request.args.get("mode", "date")
    value = (request.args.get("value") or "").strip()
    if mode not in LOOKUP_MODES or not value:
        return jsonify(error_response("Tham số tra cứu không hợp lệ")), HTTPStatus.BAD_REQUEST
    result = lookup_revenue(list_orders(), mode, value, _timezone())
    return jsonify(success_response({"mode": mode, "value": value, **result})), HTTPStatus.OK
