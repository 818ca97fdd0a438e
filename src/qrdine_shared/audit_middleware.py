import logging
import time

from flask import Flask, Response, g, request

logger = logging.getLogger("audit")


def _current_user_label() -> str:
    context = getattr(g, "staff_context", None)
    if context is not None and context.is_authenticated:
        return context.user.get("username") or "STAFF"
    return "ANONYMOUS"


def _trace_id() -> str:
    trace = request.headers.get("X-Request-ID") or "NO_SESSION"
    return trace[:8] + "..." if len(trace) > 20 else trace


def init_audit_middleware(app: Flask):
    """
    Request/response audit lines on the ``audit`` logger.
    Format: USER|ACTION|TYPE|CODE|RETVAL|SESSION|TIME
    """

    @app.before_request
    def start_timer():
        g.start_time = time.time()

    @app.after_request
    def log_request(response: Response):
        duration = 0
        if hasattr(g, "start_time"):
            duration = int((time.time() - g.start_time) * 1000)

        status_code = response.status_code
        # Streaming responses (SSE, files) have no length up front
        if response.direct_passthrough or response.is_streamed:
            content_length = 0
        else:
            content_length = response.content_length or 0

        log_line = (
            f"{_current_user_label()}|{request.method} {request.path}|RESPONSE|"
            f"{status_code}|{content_length} bytes|{_trace_id()}|{duration}ms"
        )
        if status_code >= 500:
            logger.error(log_line)
        elif status_code >= 400:
            logger.warning(log_line)
        else:
            logger.info(log_line)
        return response


def audit_action(action_name: str, details: str = "", status: str = "OK"):
    """
    Internal business action in the same line format, type INTERNAL.
    Works outside a request (scripts, listeners) as SYSTEM/BACKGROUND.
    """
    try:
        user_id = _current_user_label()
        session_trace_id = _trace_id()
        duration = int((time.time() - g.start_time) * 1000) if hasattr(g, "start_time") else 0
    except RuntimeError:
        user_id = "SYSTEM"
        session_trace_id = "BACKGROUND"
        duration = 0

    logger.info(
        f"{user_id}|{action_name}|INTERNAL|{status}|{details}|{session_trace_id}|{duration}ms"
    )
