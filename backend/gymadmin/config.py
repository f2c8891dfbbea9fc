# backend/gymadmin/config.py
from __future__ import annotations

import enum
import os


class AuthMode(str, enum.Enum):
    """
    How the identity resolver behaves when no credential resolves.

    STRICT: reject with 401.
    DEVELOPMENT_BYPASS: hand out a synthetic principal labelled as such.
    Never valid when APP_ENV is production (see validate_config).
    """
    STRICT = "strict"
    DEVELOPMENT_BYPASS = "development_bypass"


PRODUCTION_ENVIRONMENTS = {"production", "prod"}


class ConfigError(Exception):
    """Raised at start-up when the configuration is unsafe or incomplete."""
    pass


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # "production" disables every development-only switch
    APP_ENV = os.environ.get("APP_ENV", "development")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///gymadmin.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity resolution
    AUTH_MODE = os.environ.get("AUTH_MODE", AuthMode.STRICT.value)
    DEV_BYPASS_ROLE = os.environ.get("DEV_BYPASS_ROLE", "member")

    # Hosted auth platform (bearer token verification)
    PLATFORM_AUTH_URL = os.environ.get("PLATFORM_AUTH_URL", "")
    PLATFORM_SERVICE_KEY = os.environ.get("PLATFORM_SERVICE_KEY", "")
    PLATFORM_AUTH_TIMEOUT = float(os.environ.get("PLATFORM_AUTH_TIMEOUT", "5"))

    # Branch sessions issued after a staff PIN login
    STAFF_SESSION_DAYS = int(os.environ.get("STAFF_SESSION_DAYS", "90"))

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
    }


def resolve_auth_mode(value) -> AuthMode:
    if isinstance(value, AuthMode):
        return value
    try:
        return AuthMode(str(value).strip().lower())
    except ValueError:
        raise ConfigError(f"Unknown AUTH_MODE: {value!r}")


def validate_config(config) -> AuthMode:
    """
    Check start-up configuration and return the effective AuthMode.

    Raises ConfigError if the development bypass is selected while running
    in a production environment.
    """
    mode = resolve_auth_mode(config.get("AUTH_MODE", AuthMode.STRICT))
    env = str(config.get("APP_ENV", "development")).strip().lower()

    if mode is AuthMode.DEVELOPMENT_BYPASS and env in PRODUCTION_ENVIRONMENTS:
        raise ConfigError("AUTH_MODE=development_bypass is not allowed when APP_ENV is production")

    return mode
