"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
logging level and the defaults used by the negotiation calculator and the BI report. It uses environment variables
for sensitive information and defaults for development. In production, make sure to set the appropriate environment
variables and secure the secret key.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'negopro.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection for forms
    WTF_CSRF_ENABLED = True

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App UI name (used in templates)
    APP_NAME = "NegotiationPro"
    CURRENCY_SYMBOL = "$"

    # Negotiation calculator / BI defaults
    DEFAULT_DURATION_MONTHS = 12
    TOP_SUPPLIERS_LIMIT = 5


class TestConfig(Config):
    """Configuration used by the test-suite (in-memory database, no CSRF)."""

    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
    LOG_LEVEL = "DEBUG"
