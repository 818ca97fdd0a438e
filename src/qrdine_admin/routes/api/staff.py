"""
Staff API - accounts and the signed-in user's own profile.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from qrdine_shared.logging_config import get_logger
from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.staff_service import delete_staff, list_staff, save_staff, update_profile
from qrdine_shared.session_context import get_staff_context, login_required

staff_bp = Blueprint("admin_staff", __name__)
logger = get_logger(__name__)


@staff_bp.get("/staff")
@login_required
def get_staff():
    return jsonify(success_response(list_staff())), HTTPStatus.OK


@staff_bp.post("/staff")
@login_required
def create_staff():
    """
    Create an account. A password is required; the username must be unused.
    """
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    staff = save_staff(payload, get_staff_context().actor_name)
    if staff is None:
        return jsonify(
            error_response("Không thể lưu nhân viên (tên đăng nhập có thể đã tồn tại)")
        ), HTTPStatus.CONFLICT
    return jsonify(success_response(staff, "Đã thêm nhân viên")), HTTPStatus.CREATED


@staff_bp.put("/staff/<staff_id>")
@login_required
def update_staff(staff_id: str):
    """Edit an account; an empty password keeps the current one."""
    payload = {**(request.get_json(silent=True) or {}), "id": staff_id}
    staff = save_staff(payload, get_staff_context().actor_name)
    if staff is None:
        return jsonify(error_response("Không thể lưu nhân viên")), HTTPStatus.INTERNAL_SERVER_ERROR

    context = get_staff_context()
    if context.staff_id == staff_id:
        context.update(staff)
    return jsonify(success_response(staff, "Đã cập nhật nhân viên")), HTTPStatus.OK


@staff_bp.delete("/staff/<staff_id>")
@login_required
def remove_staff(staff_id: str):
    if not delete_staff(staff_id, get_staff_context().actor_name):
        return jsonify(error_response("Không tìm thấy nhân viên")), HTTPStatus.NOT_FOUND
    return jsonify(success_response(None, "Đã xóa nhân viên")), HTTPStatus.OK


@staff_bp.get("/profile")
@login_required
def get_profile():
    return jsonify(success_response(get_staff_context().user)), HTTPStatus.OK


@staff_bp.put("/profile")
@login_required
def put_profile():
    """
    Update the signed-in user's name, avatar and optionally password.

    Both staff cookies are rewritten with the new identity.
    """
    context = get_staff_context()
    staff = update_profile(context.staff_id, request.get_json(silent=True) or {})
    if staff is None:
        return jsonify(error_response("Không thể cập nhật hồ sơ")), HTTPStatus.INTERNAL_SERVER_ERROR
    context.update(staff)
    logger.info(f"Profile updated for {staff['username']}")
    return jsonify(success_response(staff, "Đã cập nhật hồ sơ")), HTTPStatus.OK
