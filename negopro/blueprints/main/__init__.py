from .routes import main_bp  # noqa: F401
