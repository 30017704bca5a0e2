"""
negopro/extensions.py

Flask extension singletons, bound to the app in create_app().

- db: SQLAlchemy (suppliers, products, price history, users)
- migrate: Alembic migrations (`flask db upgrade`)
- login_manager: session login; anonymous users are sent to auth.login
- csrf: CSRF tokens on every POST form (disabled in TestConfig)
"""

from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf import CSRFProtect

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message = "Inicie sesión para continuar."
login_manager.login_message_category = "info"
