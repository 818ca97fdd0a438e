"""
Auth API - staff sign-in backed by signed cookies.

Handles login, logout and current user info.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from qrdine_shared.audit_middleware import audit_action
from qrdine_shared.logging_config import get_logger
from qrdine_shared.schemas import LoginRequest
from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.auth_service import authenticate, logout
from qrdine_shared.session_context import get_staff_context, login_required

# Create blueprint without url_prefix (inherited from parent)
auth_bp = Blueprint("admin_auth", __name__)
logger = get_logger(__name__)


@auth_bp.post("/auth/login")
def post_login():
    """
    Authenticate a staff member and open both cookie scopes.

    Body:
        {
            "username": str,
            "password": str
        }

    Returns:
        {
            "status": "success",
            "data": {"user": {...}, "access_token": str}
        }
    """
    login_data = LoginRequest.model_validate(request.get_json(silent=True) or {})

    result = authenticate(login_data.username, login_data.password)
    if not result.success:
        audit_action("LOGIN", login_data.username, "FAILED")
        return jsonify(error_response(result.error_message)), HTTPStatus.UNAUTHORIZED

    context = get_staff_context()
    context.login(result.staff)
    audit_action("LOGIN", login_data.username)
    logger.info(f"Staff {login_data.username} signed in")
    return jsonify(
        success_response({"user": result.staff, "access_token": context.token}, "Đăng nhập thành công")
    ), HTTPStatus.OK


@auth_bp.post("/auth/logout")
def post_logout():
    """Clear both cookie scopes; logs the sign-out when someone was signed in."""
    context = get_staff_context()
    if context.is_authenticated:
        logout(context.user)
        audit_action("LOGOUT", context.user.get("username") or "")
    context.logout()
    return jsonify(success_response(None, "Đã đăng xuất thành công")), HTTPStatus.OK


@auth_bp.get("/auth/me")
@login_required
def get_me():
    return jsonify(success_response({"user": get_staff_context().user})), HTTPStatus.OK
