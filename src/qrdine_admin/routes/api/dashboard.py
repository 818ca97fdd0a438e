"""
Dashboard API - everything the admin shell shows on load.
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from qrdine_admin.services.dashboard_view import AdminDashboardView
from qrdine_shared.serializers import success_response
from qrdine_shared.services.settings_service import check_connection
from qrdine_shared.services.stats_service import DEFAULT_TIMEZONE
from qrdine_shared.session_context import get_staff_context, login_required

dashboard_api_bp = Blueprint("admin_dashboard_api", __name__)


@dashboard_api_bp.get("/dashboard")
@login_required
def get_dashboard():
    """
    Orders (with offered actions), menu, tables, statistics and headline figures.

    Query params:
        last_order_id: newest order id the client has already seen; when a
            newer PENDING order exists the payload carries an ``alert``.
    """
    view = AdminDashboardView(
        get_staff_context().user,
        current_app.config.get("STATS_TIMEZONE", DEFAULT_TIMEZONE),
    ).load()
    return jsonify(success_response(view.to_dict(request.args.get("last_order_id")))), HTTPStatus.OK


@dashboard_api_bp.get("/connection")
def get_connection():
    """Store reachability for the connection banner; open to the login screen too."""
    return jsonify(success_response({"isConnected": check_connection()})), HTTPStatus.OK
