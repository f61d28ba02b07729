from .routes import uplink_bp  # noqa: F401
