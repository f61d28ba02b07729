"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
cloud bucket and assistant settings. It uses environment variables for sensitive information and defaults for
development. Cloud credentials are never configured here: the Google client resolves them from the hosting
environment.
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    APP_NAME = "AARAA ERP"
    APP_ENV = os.environ.get("APP_ENV", "development")
    PORT = _env_int("PORT", 8080)

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'aaraa.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection (SPA sends X-CSRFToken from /api/auth/csrf)
    WTF_CSRF_ENABLED = True

    # Session lifetime: login starts a permanent session, expiry ends it
    PERMANENT_SESSION_LIFETIME = timedelta(hours=_env_int("SESSION_HOURS", 12))

    # Placeholder shared password. Not a credential system.
    SHARED_LOGIN_PASSWORD = os.environ.get("SHARED_LOGIN_PASSWORD", "123")

    # Cloud object storage
    GCS_BUCKET = os.environ.get("GCS_BUCKET", "aaraa-erp-assets")
    STORAGE_WRITE_TIMEOUT = _env_int("STORAGE_WRITE_TIMEOUT", 30)
    MAX_CONTENT_LENGTH = _env_int("MAX_UPLOAD_MB", 25) * 1024 * 1024

    # Uplink client (CLI pipeline -> /api/upload)
    UPLOAD_ENDPOINT = os.environ.get("UPLOAD_ENDPOINT", f"http://127.0.0.1:{PORT}/api/upload")
    UPLOAD_TIMEOUT = _env_int("UPLOAD_TIMEOUT", 45)

    # Hosted assistant
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")
    ASSISTANT_MODEL = os.environ.get("ASSISTANT_MODEL", "gpt-4.1-mini")

    # Built SPA (index.html + assets)
    SPA_DIST_DIR = os.environ.get("SPA_DIST_DIR", str(BASE_DIR / "aaraa_erp" / "static"))


class TestConfig(Config):
    """Configuration used by the pytest suite."""

    TESTING = True
    APP_ENV = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    GCS_BUCKET = "test-bucket"
    UPLOAD_ENDPOINT = "http://uplink.test/api/upload"
    OPENAI_API_KEY = ""
