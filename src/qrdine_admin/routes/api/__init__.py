"""
Admin API - Modular Blueprint Structure

This package organizes the staff dashboard endpoints into logical
sub-blueprints. Each module handles a specific resource or domain.
"""

import logging

from flask import Blueprint

logger = logging.getLogger(__name__)

# Create main API blueprint
api_bp = Blueprint("admin_api", __name__)

# Import and register sub-blueprints
from .auth import auth_bp
from .dashboard import dashboard_api_bp
from .logs import logs_bp
from .menu import menu_bp
from .orders import orders_bp
from .settings import settings_bp
from .staff import staff_bp
from .stats import stats_bp
from .tables import tables_bp

# Register sub-blueprints
api_bp.register_blueprint(auth_bp)
api_bp.register_blueprint(dashboard_api_bp)
api_bp.register_blueprint(orders_bp)
api_bp.register_blueprint(menu_bp)
api_bp.register_blueprint(tables_bp)
api_bp.register_blueprint(staff_bp)
api_bp.register_blueprint(settings_bp)
api_bp.register_blueprint(stats_bp)
api_bp.register_blueprint(logs_bp)

__all__ = ["api_bp"]
