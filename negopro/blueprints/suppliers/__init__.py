from .routes import suppliers_bp  # noqa: F401
