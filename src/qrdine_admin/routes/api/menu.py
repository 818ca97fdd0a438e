"""
Menu API - products and categories.
"""

from http import HTTPStatus

from flask import Blueprint, jsonify, request

from qrdine_shared.serializers import error_response, success_response
from qrdine_shared.services.menu_service import (
    delete_category,
    delete_product,
    list_categories,
    list_products,
    save_category,
    save_product,
)
from qrdine_shared.session_context import get_staff_context, login_required

menu_bp = Blueprint("admin_menu", __name__)


def _saved(result, message: str, status: int = HTTPStatus.OK):
    if result is None:
        return jsonify(error_response("Không thể lưu dữ liệu")), HTTPStatus.INTERNAL_SERVER_ERROR
    return jsonify(success_response(result, message)), status


def _deleted(ok: bool, message: str):
    if not ok:
        return jsonify(error_response("Không tìm thấy dữ liệu cần xóa")), HTTPStatus.NOT_FOUND
    return jsonify(success_response(None, message)), HTTPStatus.OK


@menu_bp.get("/products")
@login_required
def get_products():
    """Every product, unavailable ones included, newest first."""
    return jsonify(success_response(list_products())), HTTPStatus.OK


@menu_bp.post("/products")
@login_required
def create_product():
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    product = save_product(payload, get_staff_context().actor_name)
    return _saved(product, "Đã thêm món mới", HTTPStatus.CREATED)


@menu_bp.put("/products/<product_id>")
@login_required
def update_product(product_id: str):
    payload = {**(request.get_json(silent=True) or {}), "id": product_id}
    return _saved(save_product(payload, get_staff_context().actor_name), "Đã cập nhật món")


@menu_bp.delete("/products/<product_id>")
@login_required
def remove_product(product_id: str):
    return _deleted(delete_product(product_id, get_staff_context().actor_name), "Đã xóa món")


@menu_bp.get("/categories")
@login_required
def get_categories():
    return jsonify(success_response(list_categories())), HTTPStatus.OK


@menu_bp.post("/categories")
@login_required
def create_category():
    payload = request.get_json(silent=True) or {}
    payload.pop("id", None)
    category = save_category(payload, get_staff_context().actor_name)
    return _saved(category, "Đã thêm danh mục", HTTPStatus.CREATED)


@menu_bp.put("/categories/<category_id>")
@login_required
def update_category(category_id: str):
    payload = {**(request.get_json(silent=True) or {}), "id": category_id}
    return _saved(save_category(payload, get_staff_context().actor_name), "Đã cập nhật danh mục")


@menu_bp.delete("/categories/<category_id>")
@login_required
def remove_category(category_id: str):
    """Products keep the deleted category's name; nothing cascades."""
    return _deleted(
        delete_category(category_id, get_staff_context().actor_name), "Đã xóa danh mục"
    )
