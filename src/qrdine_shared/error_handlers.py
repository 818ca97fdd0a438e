"""
Centralized error handlers for the Flask application.
"""

from http import HTTPStatus

from flask import Flask, jsonify, render_template, request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException, NotFound

from qrdine_shared.logging_config import get_logger
from qrdine_shared.serializers import error_response
from qrdine_shared.services.order_service import OrderNotFoundError
from qrdine_shared.services.order_state_machine import OrderStateError
from qrdine_shared.validation import ValidationError

logger = get_logger(__name__)


def should_return_json() -> bool:
    """
    JSON for the customer and admin APIs, or when the client asks for JSON
    and not HTML; everything else gets the error page.
    """
    return (
        request.path.startswith("/api/")
        or request.path.startswith("/admin/api/")
        or (request.accept_mimetypes.accept_json and not request.accept_mimetypes.accept_html)
    )


def _respond(message: str, code: int, details: dict | None = None):
    if should_return_json():
        return jsonify(error_response(message, details)), code
    return render_template("error.html", error=message, code=code), code


def register_error_handlers(app: Flask) -> None:
    """
    Register centralized error handlers for the Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(ValidationError)
    def handle_validation_error(e: ValidationError):
        logger.warning(f"Validation error: {e}")
        return _respond(str(e), HTTPStatus.BAD_REQUEST)

    @app.errorhandler(PydanticValidationError)
    def handle_pydantic_validation_error(e: PydanticValidationError):
        logger.warning(f"Pydantic validation error: {e}")
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        return _respond("Dữ liệu không hợp lệ", HTTPStatus.BAD_REQUEST, {"errors": details})

    @app.errorhandler(OrderStateError)
    def handle_order_state_error(e: OrderStateError):
        logger.warning(f"Order state error: {e}")
        return _respond(str(e), HTTPStatus.CONFLICT)

    @app.errorhandler(OrderNotFoundError)
    def handle_order_not_found(e: OrderNotFoundError):
        return _respond("Không tìm thấy đơn hàng", HTTPStatus.NOT_FOUND)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e: SQLAlchemyError):
        logger.error(f"Database error: {e}", exc_info=True)
        return _respond("Lỗi cơ sở dữ liệu", HTTPStatus.INTERNAL_SERVER_ERROR)

    @app.errorhandler(404)
    def handle_not_found(e):
        # abort(404, description=...) carries a message meant for the user
        message = e.description if e.description != NotFound.description else None
        return _respond(message or "Không tìm thấy tài nguyên", HTTPStatus.NOT_FOUND)

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        return _respond("Phương thức không được hỗ trợ", HTTPStatus.METHOD_NOT_ALLOWED)

    @app.errorhandler(HTTPException)
    def handle_http_exception(e: HTTPException):
        logger.warning(f"HTTP exception {e.code}: {e.description}")
        return _respond(e.description or str(e), e.code)

    @app.errorhandler(Exception)
    def handle_generic_exception(e: Exception):
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return _respond("Lỗi máy chủ nội bộ", HTTPStatus.INTERNAL_SERVER_ERROR)
