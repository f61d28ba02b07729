"""
Flask extension instances for the AARAA ERP backend.

Created unbound here and bound in create_app(), so blueprints and services can import
them without importing the application itself.

cloud_storage wraps the Google Cloud Storage client the same way: one lazily created
client per application, resolved from ambient credentials on first use.
"""

from __future__ import annotations

from flask import Flask, current_app
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect
from google.cloud import storage


class CloudStorage:
    """Per-app holder for the bucket client (init_app pattern)."""

    extension_key = "cloud_storage"

    def init_app(self, app: Flask) -> None:
        app.extensions[self.extension_key] = {"client": None}

    def _state(self) -> dict:
        return current_app.extensions[self.extension_key]

    @property
    def client(self) -> storage.Client:
        state = self._state()
        if state["client"] is None:
            state["client"] = storage.Client()
        return state["client"]

    def use_client(self, client) -> None:
        """Install a pre-built client (tests, alternative credentials)."""
        self._state()["client"] = client

    def bucket(self, name: str | None = None) -> storage.Bucket:
        return self.client.bucket(name or current_app.config["GCS_BUCKET"])


db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
cloud_storage = CloudStorage()
