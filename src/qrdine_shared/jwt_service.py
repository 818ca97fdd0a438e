"""
JWT Service - signed tokens for staff identity and browser-held customer state.

Nothing is kept server-side: the staff session, the per-table customer
session (name, cart, placed order) and the remembered customer name all live
in HS256-signed cookies.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Request, current_app

JWT_ALGORITHM = "HS256"

TOKEN_ACCESS = "access"
TOKEN_TABLE_SESSION = "table_session"
TOKEN_CUSTOMER_NAME = "customer_name"


class JWTError(Exception):
    """Base exception for JWT errors."""

    def __init__(self, message: str, status: int = 401):
        self.message = message
        self.status = status
        super().__init__(message)


class TokenExpiredError(JWTError):
    """Token has expired."""

    def __init__(self):
        super().__init__("Token expired", 401)


class InvalidTokenError(JWTError):
    """Token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, 401)


def get_jwt_secret() -> str:
    """Get the signing key from app config, falling back to the environment."""
    try:
        secret = current_app.config.get("SECRET_KEY")
        if secret:
            return secret
    except RuntimeError:
        pass

    secret = os.getenv("SECRET_KEY")
    if not secret:
        raise RuntimeError("SECRET_KEY must be configured")
    return secret


def _encode(payload: dict[str, Any]) -> str:
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def create_access_token(staff: dict[str, Any], expires_days: int = 1) -> str:
    """
    Create a staff access token.

    Args:
        staff: Serialized staff record (id, username, name, role, avatarUrl)
        expires_days: Token lifetime in days
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(staff["id"]),
        "iat": now,
        "exp": now + timedelta(days=expires_days),
        "type": TOKEN_ACCESS,
        "staff_id": staff["id"],
        "username": staff["username"],
        "name": staff["name"],
        "role": staff["role"],
        "avatar_url": staff.get("avatarUrl"),
    }
    return _encode(payload)


def create_table_session_token(table_id: str, state: dict[str, Any], ttl_hours: int) -> str:
    """
    Sign a table session. Expiry is counted from the session's original
    ``timestamp`` (epoch ms), not from this write.
    """
    started = datetime.fromtimestamp(state["timestamp"] / 1000, tz=timezone.utc)
    payload = {
        "type": TOKEN_TABLE_SESSION,
        "table_id": table_id,
        "exp": started + timedelta(hours=ttl_hours),
        "state": state,
    }
    return _encode(payload)


def create_customer_name_token(name: str, timestamp: int, ttl_days: int) -> str:
    started = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    payload = {
        "type": TOKEN_CUSTOMER_NAME,
        "exp": started + timedelta(days=ttl_days),
        "name": name,
        "timestamp": timestamp,
    }
    return _encode(payload)


def decode_token(token: str, verify_type: str | None = None) -> dict[str, Any]:
    """
    Decode and validate a JWT token.

    Raises:
        TokenExpiredError: If token has expired
        InvalidTokenError: If token is invalid or of the wrong type
    """
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(str(e))

    if verify_type and payload.get("type") != verify_type:
        raise InvalidTokenError(f"Expected {verify_type} token")
    return payload


def extract_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None
