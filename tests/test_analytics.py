from datetime import date, datetime
from decimal import Decimal

from negopro.analytics import (
    available_periods,
    available_products,
    build_report,
    compute_kpis,
    filter_by_period,
    filter_records,
    monthly_trend,
    products_negotiated,
    top_suppliers,
)
from negopro.calculator import AVOIDANCE, SAVING
from negopro.normalize import HistoryRecord


def make_record(changed_at, classification=SAVING, savings="0", supplier="ACME", product="Guantes", record_id=None):
    return HistoryRecord(
        id=record_id,
        changed_at=changed_at,
        previous_price=Decimal("100"),
        new_price=Decimal("90"),
        generated_savings=Decimal(savings),
        classification=classification,
        product_id=None,
        product_description=product,
        supplier_id=None,
        supplier_name=supplier,
    )


def test_march_report_end_to_end():
    records = [
        make_record(datetime(2024, 3, 1, 9, 0), SAVING, "500"),
        make_record(datetime(2024, 3, 15, 17, 30), AVOIDANCE, "300"),
    ]

    report = build_report(records, date(2024, 3, 1), date(2024, 3, 31))

    kpis = report["kpis"]
    assert kpis["savings_value"] == Decimal("500")
    assert kpis["avoidance_value"] == Decimal("300")
    assert kpis["savings_count"] == 1
    assert kpis["avoidance_count"] == 1
    assert kpis["total_negotiations"] == 2
    assert kpis["total_impact"] == Decimal("800")

    assert len(report["monthly_trend"]) == 1
    bucket = report["monthly_trend"][0]
    assert bucket["key"] == "2024-03"
    assert bucket["name"] == "mar 24"
    assert bucket["ahorro"] == Decimal("500")
    assert bucket["avoidance"] == Decimal("300")


def test_empty_input_gives_zero_kpis():
    report = build_report([], date(2024, 1, 1), date(2024, 12, 31))
    assert report["kpis"]["total_negotiations"] == 0
    assert report["kpis"]["savings_value"] == Decimal("0")
    assert report["monthly_trend"] == []
    assert report["top_suppliers"] == []


def test_date_bounds_are_inclusive_whole_days():
    records = [
        make_record(datetime(2024, 2, 29, 23, 59), record_id=1),
        make_record(datetime(2024, 3, 1, 0, 0), record_id=2),
        make_record(datetime(2024, 3, 31, 23, 59), record_id=3),
        make_record(datetime(2024, 4, 1, 0, 0), record_id=4),
    ]
    kept = filter_records(records, date(2024, 3, 1), date(2024, 3, 31))
    assert [r.id for r in kept] == [2, 3]

    assert len(filter_records(records)) == 4
    assert [r.id for r in filter_records(records, date_to=date(2024, 2, 29))] == [1]


def test_supplier_and_product_filters_are_exact():
    records = [
        make_record(datetime(2024, 3, 1), supplier="ACME", product="Guantes"),
        make_record(datetime(2024, 3, 1), supplier="ACME S.A.", product="Guantes"),
        make_record(datetime(2024, 3, 1), supplier="ACME", product="Cascos"),
    ]
    assert len(filter_records(records, supplier="ACME")) == 2
    assert len(filter_records(records, supplier="ACME", product="Cascos")) == 1


def test_kpi_sums_match_classified_records():
    records = [
        make_record(datetime(2024, 1, 5), SAVING, "10.50"),
        make_record(datetime(2024, 1, 6), AVOIDANCE, "4.25"),
        make_record(datetime(2024, 2, 6), SAVING, "-3"),
        make_record(datetime(2024, 2, 7), "Renegociación", "99"),
    ]
    kpis = compute_kpis(records)

    classified = sum(r.generated_savings for r in records if r.classification in (SAVING, AVOIDANCE))
    assert kpis["savings_value"] + kpis["avoidance_value"] == classified
    # unknown classification: counted, not summed
    assert kpis["total_negotiations"] == 4
    assert kpis["savings_count"] + kpis["avoidance_count"] == 3


def test_top_suppliers_keeps_five_highest():
    records = [
        make_record(datetime(2024, 1, 1), savings=str(value), supplier=f"Proveedor {value}")
        for value in (100, 600, 300, 500, 200, 400)
    ]
    ranked = top_suppliers(records)
    assert [entry["name"] for entry in ranked] == [
        "Proveedor 600",
        "Proveedor 500",
        "Proveedor 400",
        "Proveedor 300",
        "Proveedor 200",
    ]


def test_top_suppliers_sums_all_classifications_and_uses_sentinel():
    records = [
        make_record(datetime(2024, 1, 1), SAVING, "100", supplier=None),
        make_record(datetime(2024, 1, 2), AVOIDANCE, "50", supplier=None),
        make_record(datetime(2024, 1, 3), SAVING, "150", supplier="ACME"),
    ]
    ranked = top_suppliers(records)
    assert ranked == [
        {"name": "Desconocido", "value": Decimal("150")},
        {"name": "ACME", "value": Decimal("150")},
    ]


def test_monthly_trend_uses_first_seen_order():
    records = [
        make_record(datetime(2024, 5, 1), SAVING, "1"),
        make_record(datetime(2024, 3, 1), AVOIDANCE, "2"),
        make_record(datetime(2024, 5, 20), AVOIDANCE, "3"),
    ]
    trend = monthly_trend(records)
    assert [b["key"] for b in trend] == ["2024-05", "2024-03"]
    assert trend[0]["ahorro"] == Decimal("1")
    assert trend[0]["avoidance"] == Decimal("3")


def test_history_filter_choices():
    records = [
        make_record(datetime(2024, 3, 1), product="Guantes"),
        make_record(datetime(2024, 4, 1), product="Cascos"),
        make_record(datetime(2024, 4, 9), product="Guantes"),
    ]
    assert available_products(records) == ["Guantes", "Cascos"]
    assert available_periods(records) == [
        {"key": "2024-03", "label": "marzo de 2024"},
        {"key": "2024-04", "label": "abril de 2024"},
    ]
    assert len(filter_by_period(records, "2024-04")) == 2
    assert products_negotiated(records) == 2
