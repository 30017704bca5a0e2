from .routes import bi_bp  # noqa: F401
