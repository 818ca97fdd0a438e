"""Action log API."""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from qrdine_shared.constants import LOG_LIST_LIMIT
from qrdine_shared.serializers import success_response
from qrdine_shared.services.audit_service import list_logs
from qrdine_shared.session_context import login_required

logs_bp = Blueprint("admin_logs", __name__)


@logs_bp.get("/logs")
@login_required
def get_logs():
    """Newest first, at most ``LOG_LIST_LIMIT`` rows."""
    limit = min(request.args.get("limit", LOG_LIST_LIMIT, type=int) or LOG_LIST_LIMIT, LOG_LIST_LIMIT)
    return jsonify(success_response(list_logs(limit))), HTTPStatus.OK
