"""
Settings API - the singleton restaurant configuration.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.settings_service import get_settings, save_settings
from qrdine_shared.session_context import get_staff_context, login_required

settings_bp = Blueprint("admin_settings", __name__)


@settings_bp.get("/settings")
@login_required
def get_settings_endpoint():
    return jsonify(success_response(get_settings())), HTTPStatus.OK


@settings_bp.put("/settings")
@login_required
def put_settings():
    settings = save_settings(request.get_json(silent=True) or {}, get_staff_context().actor_name)
    if settings is None:
        return jsonify(error_response("Không thể lưu cấu hình")), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(success_response(settings, "Đã lưu cấu hình")), HTTPStatus.OK
