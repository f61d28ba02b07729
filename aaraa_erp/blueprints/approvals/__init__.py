from .routes import approvals_bp  # noqa: F401
