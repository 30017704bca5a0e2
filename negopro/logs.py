"""
negopro/logs.py

Logging setup for the application package.

Modules log through logging.getLogger(__name__); this attaches one stream
handler to the "negopro" logger with the level from LOG_LEVEL.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(app) -> None:
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper() or "INFO"
    level = getattr(logging, level_name, logging.INFO)

    package_logger = logging.getLogger("negopro")
    package_logger.setLevel(level)

    # create_app() may run several times (tests); keep a single handler
    if not any(getattr(h, "_negopro", False) for h in package_logger.handlers):
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._negopro = True
        package_logger.addHandler(handler)

    app.logger.setLevel(level)
