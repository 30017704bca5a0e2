from decimal import Decimal
from types import SimpleNamespace

import pytest

from negopro.calculator import (
    AVOIDANCE,
    MAX_AMOUNT,
    MODE_PERCENTAGE,
    SAVING,
    NegotiationLine,
    NegotiationSession,
    coerce_months,
    coerce_number,
    price_from_percentage,
    savings_percentage,
    total_savings,
    unit_savings,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1000", Decimal("1000")),
        ("12,5", Decimal("12.5")),
        ("$ 250", Decimal("250")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        (None, Decimal("0")),
        (7, Decimal("7")),
        (float("nan"), Decimal("0")),
    ],
)
def test_coerce_number(raw, expected):
    assert coerce_number(raw) == expected


def test_coerce_months_truncates():
    assert coerce_months("6,9") == 6
    assert coerce_months("x") == 0


def test_unit_savings_and_percentage():
    assert unit_savings(1000, 900) == Decimal("100")
    assert savings_percentage(1000, 900) == Decimal("10")
    assert savings_percentage(0, 50) == Decimal("0")


def test_price_from_percentage_roundtrips_to_percentage():
    for pct in ("0", "12.5", "33", "99.9"):
        price = price_from_percentage(2400, pct)
        assert abs(savings_percentage(2400, price) - Decimal(pct)) < Decimal("0.0001")


def test_price_from_percentage_is_clamped_at_zero():
    assert price_from_percentage(1000, 100) == Decimal("0")
    assert price_from_percentage(1000, 150) == Decimal("0")


def test_total_savings_negative_on_price_increase():
    assert total_savings(1000, 900, 5, 12) == Decimal("6000")
    assert total_savings(1000, 1100, 5, 12) == Decimal("-6000")


def test_line_keeps_price_and_percentage_in_sync():
    line = NegotiationLine(1, current_price=1000, monthly_consumption=5)
    assert line.negotiated_price == Decimal("1000")
    assert not line.is_changed

    line.set_negotiated_price("800")
    assert line.discount_percentage == Decimal("20")

    line.set_discount_percentage("5")
    assert line.negotiated_price == Decimal("950")

    # price mode: the percentage follows the new base price
    line.set_current_price("1900")
    assert line.negotiated_price == Decimal("950")
    assert line.discount_percentage == Decimal("50")

    # percentage mode: the negotiated price follows
    line.set_current_price("2000", mode=MODE_PERCENTAGE)
    assert line.negotiated_price == Decimal("1000")


def test_line_apply_form():
    line = NegotiationLine(1, current_price=1000)
    line.apply(
        {
            "mode": "percentage",
            "percentage": "10",
            "negotiated_price": "1",
            "monthly_consumption": "5",
            "duration_months": "12",
            "classification": "Avoidance",
        }
    )
    assert line.negotiated_price == Decimal("900")
    assert line.classification == AVOIDANCE
    assert line.total_savings == Decimal("6000")
    assert line.edited


def test_bulk_apply_overwrites_every_line():
    lines = [
        NegotiationLine(1, current_price=1000, monthly_consumption=5),
        NegotiationLine(2, current_price=200, monthly_consumption=1, classification=AVOIDANCE),
    ]
    lines[0].set_negotiated_price(500)
    session = NegotiationSession(7, lines)

    session.apply_bulk("10", "Saving")

    first = session.get_line(1)
    assert first.unit_savings == Decimal("100")
    assert first.total_savings == Decimal("6000")
    assert all(line.classification == SAVING for line in session.lines)
    assert session.get_line(2).negotiated_price == Decimal("180")


def test_totals_per_classification():
    saving = NegotiationLine(1, current_price=100, monthly_consumption=1, negotiated_price=90, duration_months=1)
    avoidance = NegotiationLine(
        2, current_price=100, monthly_consumption=2, negotiated_price=95, duration_months=1, classification=AVOIDANCE
    )
    totals = NegotiationSession(1, [saving, avoidance]).totals()
    assert totals == {"savings": Decimal("10"), "avoidance": Decimal("10"), "total": Decimal("20")}


def test_draft_keeps_only_edited_lines_and_restores_them():
    products = [
        SimpleNamespace(id=1, description="A", current_price=Decimal("100.00"), monthly_consumption=1, classification=SAVING),
        SimpleNamespace(id=2, description="B", current_price=Decimal("50.00"), monthly_consumption=1, classification=SAVING),
    ]
    session = NegotiationSession.from_products(3, products)
    session.get_line(1).apply({"negotiated_price": "80"})

    draft = session.to_draft()
    assert list(draft) == ["1"]

    restored = NegotiationSession.from_products(3, products, draft=draft)
    assert restored.get_line(1).negotiated_price == Decimal("80")
    assert [line.product_id for line in restored.changed_lines()] == [1]


def test_draft_line_dropped_when_stored_price_changed():
    product = SimpleNamespace(id=1, description="A", current_price=Decimal("100.00"), monthly_consumption=1, classification=SAVING)
    session = NegotiationSession.from_products(3, [product])
    session.get_line(1).apply({"negotiated_price": "80"})
    draft = session.to_draft()

    product.current_price = Decimal("80.00")
    restored = NegotiationSession.from_products(3, [product], draft=draft)
    assert not restored.get_line(1).is_changed


def test_coerce_number_rejects_magnitudes_that_cannot_be_stored():
    assert coerce_number("1e27") == 0
    assert coerce_number("-1e30") == 0
    assert coerce_number(MAX_AMOUNT) == 0
    assert coerce_number("999999999999.99") == Decimal("999999999999.99")
    assert coerce_number("1e27", limit=None) == Decimal("1e27")
    assert coerce_months("1e9") == 0


def test_edited_current_price_survives_draft_restore():
    product = SimpleNamespace(id=1, description="A", current_price=Decimal("100.00"), monthly_consumption=1, classification=SAVING)
    session = NegotiationSession.from_products(3, [product])
    session.get_line(1).apply({"current_price": "110", "negotiated_price": "100"})
    draft = session.to_draft()

    restored = NegotiationSession.from_products(3, [product], draft=draft).get_line(1)
    assert restored.current_price == Decimal("110")
    assert restored.negotiated_price == Decimal("100")
    assert restored.base_price == Decimal("100.00")
    assert restored.is_changed
