"""Menu read API for client host."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify

from qrdine_shared.serializers import success_response
from qrdine_shared.services.menu_service import get_menu

menu_bp = Blueprint("client_menu_api", __name__)


@menu_bp.get("/menu")
def get_menu_endpoint():
    return jsonify(success_response(get_menu())), HTTPStatus.OK
