"""
aaraa_erp/__init__.py

Flask application factory for the AARAA ERP backend.

Surfaces:
- JSON API under /api (auth, uploads, submissions, approvals, projects, dashboard)
- Every other GET path serves the built single-page application's index.html;
  the client-side router owns navigation.

Role-gated navigation lives in security.FEATURES. Menu visibility and route
permissions are filtered against the same role sets, server-side.
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Flask, abort, send_from_directory

from .errors import AuthenticationError, register_error_handlers
from .extensions import cloud_storage, csrf, db, login_manager, migrate
from .models import Profile

# Blueprint imports kept inside create_app() to reduce import side effects.


def create_app(config_object: str = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_object)

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    cloud_storage.init_app(app)

    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(employee_id: str) -> Profile | None:
        """Reload the session's employee on every request."""
        return db.session.get(Profile, employee_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        raise AuthenticationError("Authentication required.")

    register_error_handlers(app)

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.auth import auth_bp
    from .blueprints.uplink import uplink_bp
    from .blueprints.submissions import submissions_bp
    from .blueprints.approvals import approvals_bp
    from .blueprints.projects import projects_bp
    from .blueprints.dashboard import dashboard_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(uplink_bp)
    app.register_blueprint(submissions_bp)
    app.register_blueprint(approvals_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(dashboard_bp)

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    from .cli import register_cli

    register_cli(app)

    # ----------------------------------------------------------------------
    # Single-page application
    # ----------------------------------------------------------------------
    @app.route("/", defaults={"path": ""})
    @app.route("/<path:path>")
    def spa(path: str):
        """Serve built assets; anything else falls back to index.html."""
        if path == "api" or path.startswith("api/"):
            abort(404)

        dist_dir = Path(app.config["SPA_DIST_DIR"])
        if path and (dist_dir / path).is_file():
            return send_from_directory(dist_dir, path)
        return send_from_directory(dist_dir, "index.html")

    app.logger.info("AARAA ERP ready (bucket: %s)", app.config["GCS_BUCKET"])
    return app
