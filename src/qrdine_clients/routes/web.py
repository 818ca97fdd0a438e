"""
Customer facing web views rendered via Jinja templates.
"""

from __future__ import annotations

from flask import Blueprint, render_template, request

from qrdine_shared.logging_config import get_logger
from qrdine_shared.services.settings_service import get_settings
from qrdine_shared.services.table_service import get_table
from qrdine_shared.validation import ValidationError, validate_table_id

logger = get_logger(__name__)

web_bp = Blueprint("client_web", __name__)


@web_bp.get("/")
def home():
    """
    Landing page, or the ordering shell when the QR link carries ``?table=``.

    The shell only bootstraps the table id; menu, cart and orders come from
    ``/api/tables/<id>/view`` and the change feed.
    """
    table_id = (request.args.get("table") or "").strip()
    settings = get_settings()
    if not table_id:
        return render_template("landing.html", settings=settings)

    try:
        validate_table_id(table_id)
    except ValidationError as e:
        logger.info(f"Rejected table link {table_id!r}: {e}")
        return render_template("error.html", error="Mã bàn không hợp lệ", code=400), 400

    table = get_table(table_id)
    if table is None:
        return render_template("error.html", error=f"Không tìm thấy bàn {table_id}", code=404), 404
    return render_template("ordering.html", table=table, settings=settings)
