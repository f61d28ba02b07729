from .routes import submissions_bp  # noqa: F401
