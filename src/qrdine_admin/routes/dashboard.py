"""
Server-rendered shell for the staff dashboard.
"""

from __future__ import annotations

import logging

from flask import Blueprint, render_template

from qrdine_shared.services.settings_service import check_connection, get_settings
from qrdine_shared.session_context import get_staff_context

dashboard_bp = Blueprint("admin_dashboard", __name__)
logger = logging.getLogger(__name__)


@dashboard_bp.get("/admin")
def dashboard():
    """
    Dashboard shell, or the login screen when nobody is signed in.

    Data comes from ``/admin/api/dashboard`` and the change feed.
    """
    context = get_staff_context()
    return render_template(
        "admin.html",
        user=context.user,
        settings=get_settings(),
        is_connected=check_connection(),
    )
