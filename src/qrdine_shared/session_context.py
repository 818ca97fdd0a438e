"""
Staff session context.

Identity is resolved once per request into a ``StaffSessionContext`` kept on
``g.staff_context``. The context owns both storage scopes of the staff token:

* ``qrdine_staff_session``: browser-session cookie (no max-age)
* ``qrdine_staff``: persistent cookie (``STAFF_SESSION_TTL_DAYS``)

Views change identity only through ``login``/``update``/``logout`` and a single
``sync(response)`` call in ``after_request`` performs every cookie write.
"""

from __future__ import annotations

import logging
from functools import wraps
from http import HTTPStatus
from typing import Any

from flask import Flask, Request, Response, current_app, g, jsonify, request

from qrdine_shared.constants import STAFF_PERSISTENT_COOKIE, STAFF_SESSION_COOKIE, SYSTEM_USER
from qrdine_shared.jwt_service import (
    TOKEN_ACCESS,
    InvalidTokenError,
    TokenExpiredError,
    create_access_token,
    decode_token,
    extract_bearer_token,
)
from qrdine_shared.serializers import error_response

logger = logging.getLogger(__name__)

SOURCE_SESSION = "session"
SOURCE_PERSISTENT = "persistent"
SOURCE_BEARER = "bearer"

_PENDING_NONE = None
_PENDING_WRITE = "write"
_PENDING_CLEAR = "clear"


def _decode_staff(token: str | None) -> dict[str, Any] | None:
    if not token:
        return None
    try:
        return decode_token(token, verify_type=TOKEN_ACCESS)
    except TokenExpiredError:
        logger.debug("Expired staff token")
    except InvalidTokenError as e:
        logger.warning(f"Invalid staff token: {e}")
    return None


def _claims_to_staff(claims: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": claims.get("staff_id"),
        "username": claims.get("username"),
        "name": claims.get("name"),
        "role": claims.get("role"),
        "avatarUrl": claims.get("avatar_url"),
    }


class StaffSessionContext:
    """Who is signed in for this request, and which cookie writes are owed."""

    def __init__(
        self,
        user: dict[str, Any] | None = None,
        source: str | None = None,
        token: str | None = None,
        ttl_days: int = 1,
    ):
        self.user = user
        self.source = source
        self.token = token
        self.ttl_days = ttl_days
        self._pending = _PENDING_NONE

    @classmethod
    def from_request(cls, req: Request, ttl_days: int = 1) -> StaffSessionContext:
        """
        Resolve identity from the session cookie, then the persistent cookie,
        then an ``Authorization: Bearer`` header.
        """
        for source, token in (
            (SOURCE_SESSION, req.cookies.get(STAFF_SESSION_COOKIE)),
            (SOURCE_PERSISTENT, req.cookies.get(STAFF_PERSISTENT_COOKIE)),
            (SOURCE_BEARER, extract_bearer_token(req)),
        ):
            claims = _decode_staff(token)
            if claims:
                return cls(_claims_to_staff(claims), source, token, ttl_days)
        return cls(ttl_days=ttl_days)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def staff_id(self) -> str | None:
        return self.user["id"] if self.user else None

    @property
    def actor_name(self) -> str:
        """Name written into the action log for this request."""
        return self.user["name"] if self.user and self.user.get("name") else SYSTEM_USER

    def login(self, staff: dict[str, Any]) -> None:
        self.user = dict(staff)
        self.token = create_access_token(staff, self.ttl_days)
        self._pending = _PENDING_WRITE

    def update(self, staff: dict[str, Any]) -> None:
        """Refresh the stored identity after a profile change."""
        self.login(staff)

    def logout(self) -> None:
        self.user = None
        self.token = None
        self._pending = _PENDING_CLEAR

    def sync(self, response: Response) -> Response:
        """
        Bring both cookie scopes in line with this context.

        Writes both on login/update, clears both on logout and copies the
        persistent scope into the session scope when only the former exists.
        """
        secure = request.is_secure
        if self._pending == _PENDING_CLEAR:
            response.delete_cookie(STAFF_SESSION_COOKIE, path="/")
            response.delete_cookie(STAFF_PERSISTENT_COOKIE, path="/")
        elif self._pending == _PENDING_WRITE and self.token:
            response.set_cookie(
                STAFF_SESSION_COOKIE, self.token, httponly=True, samesite="Lax", secure=secure
            )
            response.set_cookie(
                STAFF_PERSISTENT_COOKIE,
                self.token,
                max_age=self.ttl_days * 86400,
                httponly=True,
                samesite="Lax",
                secure=secure,
            )
        elif self.source == SOURCE_PERSISTENT and self.token:
            response.set_cookie(
                STAFF_SESSION_COOKIE, self.token, httponly=True, samesite="Lax", secure=secure
            )
        self._pending = _PENDING_NONE
        return response


def get_staff_context() -> StaffSessionContext:
    context = getattr(g, "staff_context", None)
    if context is None:
        context = StaffSessionContext.from_request(
            request, current_app.config.get("STAFF_SESSION_TTL_DAYS", 1)
        )
        g.staff_context = context
    return context


def init_staff_session(app: Flask) -> None:
    """Resolve the staff context before each request and sync its cookies after."""

    @app.before_request
    def load_staff_context():
        g.staff_context = StaffSessionContext.from_request(
            request, app.config.get("STAFF_SESSION_TTL_DAYS", 1)
        )

    @app.after_request
    def sync_staff_context(response):
        context = getattr(g, "staff_context", None)
        if context is not None:
            context.sync(response)
        return response


def login_required(f):
    """
    Decorator to require a signed-in staff member.

    Returns 401 JSON when no valid staff token is present.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not get_staff_context().is_authenticated:
            return jsonify(error_response("Vui lòng đăng nhập")), HTTPStatus.UNAUTHORIZED
        return f(*args, **kwargs)

    return decorated_function
