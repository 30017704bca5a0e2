"""
negopro/__init__.py

Flask application factory for NegotiationPro (supplier price negotiations,
savings / avoidance tracking and BI).

Requirements:
- PostgreSQL-ready (SQLAlchemy + migrations) but SQLite is used for dev.
- Every page except login / first-admin bootstrap requires a logged-in user.
  There are no roles.

Navigation:
- Top bar with 3 modules:
  1) Nueva Negociación
  2) Proveedores
  3) Business Intelligence
"""

from __future__ import annotations

from pathlib import Path

import click
from flask import Flask, render_template
from flask_login import current_user

from .calculator import CLASSIFICATIONS
from .extensions import csrf, db, login_manager, migrate
from .logs import configure_logging
from .models import User
from .utils import (
    classification_badge_class,
    classification_label,
    format_currency,
    format_percent,
)

# Blueprint imports kept inside create_app() where possible to reduce import side effects.


# -------------------------------------------------------------------
# NAVIGATION STRUCTURE
# -------------------------------------------------------------------

NAV_ITEMS = [
    {"label": "Nueva Negociación", "endpoint": "negotiation.start"},
    {"label": "Proveedores", "endpoint": "suppliers.suppliers_list"},
    {"label": "Business Intelligence", "endpoint": "bi.report"},
]


def create_app(config_object: str = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        """Load user for Flask-Login."""
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.auth import auth_bp
    from .blueprints.bi import bi_bp
    from .blueprints.main import main_bp
    from .blueprints.negotiation import negotiation_bp
    from .blueprints.suppliers import suppliers_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(suppliers_bp)
    app.register_blueprint(negotiation_bp)
    app.register_blueprint(bi_bp)

    # ----------------------------------------------------------------------
    # Templates: filters and globals
    # ----------------------------------------------------------------------
    app.jinja_env.filters["currency"] = lambda v: format_currency(v, app.config.get("CURRENCY_SYMBOL", "$"))
    app.jinja_env.filters["percent"] = format_percent
    app.jinja_env.filters["classification_label"] = classification_label
    app.jinja_env.filters["classification_badge"] = classification_badge_class

    @app.context_processor
    def inject_globals():
        """Navigation is only shown to logged-in users."""
        nav_items = NAV_ITEMS if current_user.is_authenticated else []
        return {"config": app.config, "nav_items": nav_items, "classifications": CLASSIFICATIONS}

    # ----------------------------------------------------------------------
    # Errors
    # ----------------------------------------------------------------------
    @app.errorhandler(404)
    def not_found(_error):
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def server_error(error):
        app.logger.error("Unhandled error: %s", error)
        db.session.rollback()
        return render_template("errors/500.html"), 500

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("init-db")
    def init_db_command():
        """Create all tables (development; use `flask db upgrade` with migrations)."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("seed-demo")
    def seed_demo_command():
        """Seed demo suppliers and products."""
        from .seed import seed_demo_data

        seed_demo_data()
        click.echo("Demo suppliers and products seeded.")

    @app.cli.command("import-legacy")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
    def import_legacy_command(path: Path):
        """Import suppliers, products and price history from a legacy JSON export."""
        from .migration import LegacyImportError, import_legacy_document, load_legacy_file

        try:
            summary = import_legacy_document(load_legacy_file(path))
        except LegacyImportError as exc:
            raise click.ClickException(str(exc)) from exc

        click.echo(
            "Imported: {suppliers_created} supplier(s), {products_created} product(s), "
            "{history_created} history row(s); skipped {history_skipped}.".format(**summary)
        )

    return app
