"""
Factory for the QR Dine Flask application.

One process serves the customer pages (``/``), the customer API (``/api``),
the staff dashboard (``/admin``) and its API (``/admin/api``). Identity and
customer state travel in signed cookies; nothing is kept in server sessions.
"""

from __future__ import annotations

import os

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from qrdine_admin.routes.api import api_bp as admin_api_bp
from qrdine_admin.routes.dashboard import dashboard_bp
from qrdine_clients.routes.api import api_bp as client_api_bp
from qrdine_clients.routes.web import web_bp
from qrdine_shared.audit_middleware import init_audit_middleware
from qrdine_shared.config import load_config, validate_required_env_vars
from qrdine_shared.db import get_session, init_db, init_engine
from qrdine_shared.error_handlers import register_error_handlers
from qrdine_shared.logging_config import configure_logging, get_logger
from qrdine_shared.models import Base
from qrdine_shared.services.seed import ensure_seed_data, load_seed_data
from qrdine_shared.services.settings_service import check_connection
from qrdine_shared.session_context import init_staff_session

logger = get_logger(__name__)


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}, using {default}")
        return default


def create_app() -> Flask:
    """
    Build and configure the Flask app.
    """
    # Validate all required environment variables (fail-fast)
    validate_required_env_vars(skip_in_debug=True)

    app = Flask(
        __name__,
        template_folder="templates",
        static_folder="static",
    )
    config = load_config("qrdine")

    configure_logging(config.app_name, config.log_level)

    # Initialize database engine first (before any DB queries)
    init_engine(config)
    init_db(Base.metadata)

    with get_session() as session:
        if config.load_seed_data:
            load_seed_data(session, config)
        else:
            ensure_seed_data(session, config)

    app.config["SECRET_KEY"] = config.secret_key
    app.config["APP_NAME"] = config.app_name
    app.config["PUBLIC_BASE_URL"] = config.public_base_url
    app.config["STATS_TIMEZONE"] = config.stats_timezone
    app.config["TABLE_SESSION_TTL_HOURS"] = config.table_session_ttl_hours
    app.config["CUSTOMER_NAME_TTL_DAYS"] = config.customer_name_ttl_days
    app.config["STAFF_SESSION_TTL_DAYS"] = config.staff_session_ttl_days
    app.config["REALTIME_POLL_SECONDS"] = _read_float("REALTIME_POLL_SECONDS", 1.0)
    app.config["REALTIME_STREAM_SECONDS"] = _read_float("REALTIME_STREAM_SECONDS", 300.0)
    app.config["DEBUG_MODE"] = config.debug_mode
    app.config["DEBUG"] = config.flask_debug
    app.json.ensure_ascii = False

    init_staff_session(app)
    init_audit_middleware(app)
    register_error_handlers(app)

    num_proxies = int(os.getenv("NUM_PROXIES", "0"))
    if num_proxies > 0:
        app.wsgi_app = ProxyFix(
            app.wsgi_app,
            x_for=num_proxies,
            x_proto=num_proxies,
            x_host=num_proxies,
            x_port=num_proxies,
        )

    app.register_blueprint(client_api_bp, url_prefix="/api")
    app.register_blueprint(admin_api_bp, url_prefix="/admin/api")
    app.register_blueprint(web_bp)
    app.register_blueprint(dashboard_bp)

    # Configure CORS with secure defaults
    raw_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
    allowed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
    if config.debug_mode or not allowed_origins:
        allowed_origins = [
            "http://localhost:5000",
            "http://127.0.0.1:5000",
        ]
    CORS(
        app,
        resources={
            r"/api/*": {"origins": allowed_origins, "supports_credentials": True},
            r"/admin/api/*": {"origins": allowed_origins, "supports_credentials": True},
        },
    )

    @app.route("/health")
    def health():
        connected = check_connection()
        return jsonify(
            {"status": "ok" if connected else "degraded", "service": "qrdine", "database": connected}
        ), 200 if connected else 503

    logger.info(f"{config.app_name} ready (seed data: {config.load_seed_data})")
    return app
