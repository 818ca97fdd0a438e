"""
Clients API - Modular Blueprint Structure

This package organizes the customer API endpoints into logical sub-blueprints.
All endpoints are registered under the main api_bp blueprint.
"""

from flask import Blueprint

# Create main API blueprint
api_bp = Blueprint("client_api", __name__)

# Import all sub-blueprints
from qrdine_clients.routes.api.menu import menu_bp
from qrdine_clients.routes.api.orders import orders_bp
from qrdine_clients.routes.api.realtime import realtime_bp
from qrdine_clients.routes.api.tables import tables_bp

# Register all sub-blueprints with the main API blueprint
api_bp.register_blueprint(menu_bp)
api_bp.register_blueprint(tables_bp)
api_bp.register_blueprint(orders_bp)
api_bp.register_blueprint(realtime_bp)

__all__ = ["api_bp"]
