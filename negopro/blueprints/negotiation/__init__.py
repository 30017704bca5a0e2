from .routes import negotiation_bp  # noqa: F401
