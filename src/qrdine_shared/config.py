"""
Utilities to centralize configuration handling across the qrdine services.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Simple container for application level settings."""

    app_name: str
    # PostgreSQL database
    database_url: str
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_sslmode: str
    # App settings
    secret_key: str
    log_level: str
    public_base_url: str
    stats_timezone: str
    debug_mode: bool
    flask_debug: bool
    load_seed_data: bool
    admin_username: str
    admin_password: str
    # Browser persistence
    table_session_ttl_hours: int
    customer_name_ttl_days: int
    staff_session_ttl_days: int

    @property
    def sqlalchemy_uri(self) -> str:
        """
        Build a SQLAlchemy URI.

        DATABASE_URL wins when present (used for SQLite in tests and for
        managed Postgres); otherwise a psycopg2 URI is assembled from the parts.
        """
        if self.database_url:
            return self.database_url
        ssl_arg = f"?sslmode={self.db_sslmode}" if self.db_sslmode else ""
        return (
            f"postgresql+psycopg2://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}{ssl_arg}"
        )


def _read_env(name: str, default: str | None = None) -> str:
    """
    Internal helper to fetch environment variables with support for defaults.
    """
    value = os.getenv(name)
    if value is None:
        if default is None:
            raise RuntimeError(f"Missing required environment variable '{name}'")
        value = default
    return value


def read_bool(name: str, default: str = "false") -> bool:
    value = _read_env(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def read_int(name: str, default: str) -> int:
    value = _read_env(name, default)
    try:
        return int(value)
    except ValueError as exc:
        raise RuntimeError(f"Environment variable '{name}' must be an integer, got: {value}") from exc


def validate_required_env_vars(skip_in_debug: bool = False) -> None:
    """
    Validate that all required environment variables are set.

    Designed to fail fast during startup rather than encountering errors
    later (e.g. signing a session cookie with a placeholder key).

    Args:
        skip_in_debug: If True, skip validation when DEBUG_MODE=true

    Raises:
        RuntimeError: If any required variable is missing or has an invalid value
    """
    if skip_in_debug and read_bool("DEBUG_MODE", "false"):
        return

    errors = []

    secret_key = os.getenv("SECRET_KEY", "")
    if not secret_key or secret_key in [
        "change-me-please",
        "super-secret-change-me",
        "your-secret-key-here",
    ]:
        errors.append(
            "SECRET_KEY must be configured with a secure random value. "
            'Generate with: python3 -c "import secrets; print(secrets.token_urlsafe(32))"'
        )

    if not os.getenv("DATABASE_URL"):
        for name in ("POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB"):
            if not os.getenv(name):
                errors.append(f"{name} must be configured (or set DATABASE_URL)")

    for name, low, high in (
        ("TABLE_SESSION_TTL_HOURS", 1, 168),
        ("CUSTOMER_NAME_TTL_DAYS", 1, 365),
        ("STAFF_SESSION_TTL_DAYS", 1, 30),
    ):
        raw = os.getenv(name, "")
        if not raw:
            continue
        try:
            value = int(raw)
        except ValueError:
            errors.append(f"{name} must be a valid integer, got: {raw}")
            continue
        if value < low or value > high:
            errors.append(f"{name}={value} is outside the allowed range ({low}-{high})")

    if errors:
        error_msg = "\nConfiguration errors - missing or invalid environment variables:\n"
        for error in errors:
            error_msg += f"  - {error}\n"
        raise RuntimeError(error_msg)


def load_config(app_name: str) -> AppConfig:
    """
    Produce an AppConfig instance populated from environment variables.

    Each entry point passes its desired `app_name` to keep logs easy to
    differentiate while still reusing the same config loader.
    """
    return AppConfig(
        app_name=app_name,
        database_url=_read_env("DATABASE_URL", ""),
        db_host=_read_env("POSTGRES_HOST", "qrdine-postgres"),
        db_port=read_int("POSTGRES_PORT", "5432"),
        db_user=_read_env("POSTGRES_USER", "qrdine"),
        db_password=_read_env("POSTGRES_PASSWORD", "qrdine"),
        db_name=_read_env("POSTGRES_DB", "qrdine"),
        db_sslmode=_read_env("POSTGRES_SSLMODE", "disable"),
        secret_key=_read_env("SECRET_KEY", "super-secret-change-me"),
        log_level=_read_env("LOG_LEVEL", "INFO"),
        public_base_url=_read_env("PUBLIC_BASE_URL", ""),
        stats_timezone=_read_env("STATS_TIMEZONE", "Asia/Ho_Chi_Minh"),
        debug_mode=read_bool("DEBUG_MODE", "false"),
        flask_debug=read_bool("FLASK_DEBUG", "false"),
        load_seed_data=read_bool("LOAD_SEED_DATA", "false"),
        admin_username=_read_env("ADMIN_USERNAME", "admin"),
        admin_password=_read_env("ADMIN_PASSWORD", ""),
        table_session_ttl_hours=read_int("TABLE_SESSION_TTL_HOURS", "24"),
        customer_name_ttl_days=read_int("CUSTOMER_NAME_TTL_DAYS", "30"),
        staff_session_ttl_days=read_int("STAFF_SESSION_TTL_DAYS", "1"),
    )
