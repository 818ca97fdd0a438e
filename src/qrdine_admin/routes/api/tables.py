"""
Tables API - floor plan, occupancy and QR codes.
"""

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request, send_file

from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.schemas import TableStatusRequest
from qrdine_shared.services.table_service import (
    build_table_url,
    delete_table,
    generate_qr_png,
    get_table,
    list_tables,
    save_table,
    update_table_status,
)
from qrdine_shared.session_context import get_staff_context, login_required

tables_bp = Blueprint("admin_tables", __name__)


def _public_base_url() -> str:
    """Configured public origin, else the origin this request came in on."""
    return current_app.config.get("PUBLIC_BASE_URL") or request.host_url


@tables_bp.get("/tables")
@login_required
def get_tables():
    base_url = _public_base_url()
    tables = [{**table, "url": build_table_url(base_url, table["id"])} for table in list_tables()]
    return jsonify(success_response(tables)), HTTPStatus.OK


@tables_bp.post("/tables")
@login_required
def create_table():
    table = save_table(request.get_json(silent=True) or {}, get_staff_context().actor_name)
    if table is None:
        return jsonify(error_response("Không thể lưu bàn")), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(success_response(table, "Đã thêm bàn")), HTTPStatus.CREATED


@tables_bp.put("/tables/<table_id>")
@login_required
def update_table(table_id: str):
    payload = {**(request.get_json(silent=True) or {}), "id": table_id}
    table = save_table(payload, get_staff_context().actor_name)
    if table is None:
        return jsonify(error_response("Không thể lưu bàn")), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(success_response(table, "Đã cập nhật bàn")), HTTPStatus.OK


@tables_bp.delete("/tables/<table_id>")
@login_required
def remove_table(table_id: str):
    """Orders placed at the table stay in the history."""
    if not delete_table(table_id, get_staff_context().actor_name):
        return jsonify(error_response("Không tìm thấy bàn")), HTTPStatus.NOT_FOUND
    return jsonify(success_response(None, "Đã xóa bàn")), HTTPStatus.OK


@tables_bp.patch("/tables/<table_id>/status")
@login_required
def set_table_status(table_id: str):
    payload = TableStatusRequest.model_validate(request.get_json(silent=True) or {})
    if not update_table_status(table_id, payload.is_occupied, get_staff_context().actor_name):
        return jsonify(error_response("Không thể cập nhật trạng thái bàn")), HTTPStatus.NOT_FOUND
    return jsonify(success_response(get_table(table_id))), HTTPStatus.OK


@tables_bp.post("/tables/<table_id>/reset")
@login_required
def reset_table(table_id: str):
    """Mark a table free again, e.g. after a cancelled order."""
    if not update_table_status(table_id, False, get_staff_context().actor_name):
        return jsonify(error_response("Không thể cập nhật trạng thái bàn")), HTTPStatus.NOT_FOUND
    return jsonify(success_response(get_table(table_id), "Đã dọn bàn")), HTTPStatus.OK


@tables_bp.get("/tables/<table_id>/qr")
@login_required
def get_table_qr(table_id: str):
    """PNG QR code encoding ``<origin>/?table=<id>``."""
    if get_table(table_id) is None:
        return jsonify(error_response("Không tìm thấy bàn")), HTTPStatus.NOT_FOUND
    png = generate_qr_png(build_table_url(_public_base_url(), table_id))
    return send_file(png, mimetype="image/png", download_name=f"table-{table_id}.png")
