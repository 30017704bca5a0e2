import logging
from datetime import date
from decimal import Decimal

from negopro.exports import export_filename
from negopro.utils import (
    classification_badge_class,
    classification_label,
    format_currency,
    format_percent,
    parse_date,
    safe_next_url,
)


def test_format_currency_colombian_style():
    assert format_currency(Decimal("1234567.4")) == "$ 1.234.567"
    assert format_currency("-1500") == "-$ 1.500"
    assert format_currency(None) == "$ 0"


def test_format_percent():
    assert format_percent(Decimal("12.345")) == "12.3%"


def test_classification_display():
    assert classification_label("Saving") == "Ahorro"
    assert classification_label("Avoidance") == "Avoidance"
    assert classification_label("Otro") == "Otro"
    assert classification_badge_class("Otro") == "badge-unknown"


def test_parse_date():
    assert parse_date("2024-03-01") == date(2024, 3, 1)
    assert parse_date("01/03/2024", default=date(2024, 1, 1)) == date(2024, 1, 1)
    assert parse_date("") is None


def test_safe_next_url(app):
    with app.test_request_context():
        assert safe_next_url("/bi/", "main.index") == "/bi/"
        assert safe_next_url("//evil.example.com", "main.index") == "/"
        assert safe_next_url("bi", "main.index") == "/"


def test_export_filename_fallbacks():
    assert export_filename(date(2024, 3, 1), date(2024, 3, 31)) == "Reporte_BI_2024-03-01_al_2024-03-31.csv"
    assert export_filename(None, None) == "Reporte_BI_inicio_al_hoy.csv"


def test_logging_configured_once(app):
    logger = logging.getLogger("negopro")
    handlers = [h for h in logger.handlers if getattr(h, "_negopro", False)]
    assert len(handlers) == 1
    assert logger.level == logging.DEBUG


def test_formatting_very_large_amounts():
    assert format_currency(Decimal("1e30")) == "$ 1" + ".000" * 10
    assert format_currency("-1e27") == "-$ 1" + ".000" * 9
    assert format_percent("1e30") == "1" + "0" * 30 + ".0%"
