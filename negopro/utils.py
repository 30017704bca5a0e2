"""
Utility functions shared across the app. This includes:
- format_currency / format_percent: template filters (es-CO style, no cents).
- classification_label / classification_badge_class: Saving vs Avoidance display.
- parse_date: ISO date from query string input.
- safe_next_url: local-only redirect targets.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP, localcontext
from urllib.parse import urlparse

from flask import url_for

from .calculator import AVOIDANCE, SAVING, coerce_number


def _rounded(value, step: Decimal) -> Decimal:
    # Display only: stored totals can exceed the input bounds
    amount = coerce_number(value, limit=None)
    with localcontext() as ctx:
        ctx.prec = max(28, amount.adjusted() + 3)
        return amount.quantize(step, rounding=ROUND_HALF_UP)


def format_currency(value, symbol: str = "$") -> str:
    """
    Format as Colombian pesos: "$ 1.234.567" (negative: "-$ 1.234").
    """
    amount = _rounded(value, Decimal("1"))
    sign = "-" if amount < 0 else ""
    digits = f"{abs(amount):,.0f}".replace(",", ".")
    return f"{sign}{symbol} {digits}"


def format_percent(value) -> str:
    amount = _rounded(value, Decimal("0.1"))
    return f"{amount}%"


def classification_label(classification) -> str:
    if classification == SAVING:
        return "Ahorro"
    if classification == AVOIDANCE:
        return "Avoidance"
    return classification or "N/A"


def classification_badge_class(classification) -> str:
    """
    CSS class for a classification badge:
    - Saving    -> green
    - Avoidance -> amber
    """
    if classification == SAVING:
        return "badge-saving"
    if classification == AVOIDANCE:
        return "badge-avoidance"
    return "badge-unknown"


def parse_date(value, default: date | None = None) -> date | None:
    """Parse YYYY-MM-DD from form/query; returns default for empty/invalid."""
    raw = (value or "").strip() if isinstance(value, str) else value
    if not raw:
        return default
    if isinstance(raw, date):
        return raw
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        return default


def safe_next_url(raw_next: str | None, fallback_endpoint: str) -> str:
    """
    Return a safe local next URL.

    Rules:
    - Only allow relative URLs (no scheme/netloc).
    - Fall back to an internal endpoint if invalid/empty.
    """
    if not raw_next:
        return url_for(fallback_endpoint)

    parsed = urlparse(raw_next)

    # Disallow external redirects
    if parsed.scheme or parsed.netloc or not raw_next.startswith("/"):
        return url_for(fallback_endpoint)

    return raw_next
