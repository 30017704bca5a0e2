"""
negopro/analytics.py

Savings / avoidance analytics over committed negotiations.

Input is a list of normalized HistoryRecord (see normalize.py). Outputs are
plain dicts ready for templates:
- KPI set (sums and counts per classification)
- monthly trend (one bucket per calendar month that has records)
- top suppliers by generated savings

Nothing here raises on empty input: an empty record set produces zero KPIs and
empty series.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from .calculator import AVOIDANCE, SAVING, ZERO
from .normalize import UNKNOWN_SUPPLIER, HistoryRecord

TOP_SUPPLIERS_LIMIT = 5

MONTH_ABBREVIATIONS = ["ene", "feb", "mar", "abr", "may", "jun", "jul", "ago", "sep", "oct", "nov", "dic"]
MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]


# ---------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------
def filter_records(
    records: Iterable[HistoryRecord],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    supplier: Optional[str] = None,
    product: Optional[str] = None,
) -> List[HistoryRecord]:
    """
    Keep records whose change date (calendar day) is within [date_from, date_to].

    Both bounds are inclusive; a None bound is open. Supplier and product are
    exact matches on the record's supplier name / product description.
    """
    result = []
    for record in records:
        day = record.change_date
        if date_from is not None and day < date_from:
            continue
        if date_to is not None and day > date_to:
            continue
        if supplier and (record.supplier_name or UNKNOWN_SUPPLIER) != supplier:
            continue
        if product and record.product_description != product:
            continue
        result.append(record)
    return result


def period_key(record: HistoryRecord) -> str:
    return f"{record.changed_at.year:04d}-{record.changed_at.month:02d}"


def period_label(key: str) -> str:
    """'2024-03' -> 'marzo de 2024'."""
    year, month = key.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} de {year}"


def short_period_label(key: str) -> str:
    """'2024-03' -> 'mar 24'."""
    year, month = key.split("-")
    return f"{MONTH_ABBREVIATIONS[int(month) - 1]} {year[-2:]}"


def filter_by_period(records: Iterable[HistoryRecord], period: Optional[str]) -> List[HistoryRecord]:
    if not period:
        return list(records)
    return [r for r in records if period_key(r) == period]


# ---------------------------------------------------------------------
# Aggregations
# ---------------------------------------------------------------------
def compute_kpis(records: Iterable[HistoryRecord]) -> Dict[str, object]:
    savings_value = ZERO
    avoidance_value = ZERO
    savings_count = 0
    avoidance_count = 0
    total = 0

    for record in records:
        total += 1
        if record.classification == SAVING:
            savings_value += record.generated_savings
            savings_count += 1
        elif record.classification == AVOIDANCE:
            avoidance_value += record.generated_savings
            avoidance_count += 1

    return {
        "savings_value": savings_value,
        "avoidance_value": avoidance_value,
        "savings_count": savings_count,
        "avoidance_count": avoidance_count,
        "total_negotiations": total,
        "total_impact": savings_value + avoidance_value,
    }


def monthly_trend(records: Iterable[HistoryRecord]) -> List[Dict[str, object]]:
    """
    One bucket per year-month present in the records, in first-seen order.

    Months without records are not produced. Sort by "key" for a strict
    chronological series.
    """
    buckets: Dict[str, Dict[str, object]] = {}
    for record in records:
        key = period_key(record)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = {"key": key, "name": short_period_label(key), "ahorro": ZERO, "avoidance": ZERO}
            buckets[key] = bucket

        if record.classification == SAVING:
            bucket["ahorro"] += record.generated_savings
        elif record.classification == AVOIDANCE:
            bucket["avoidance"] += record.generated_savings

    return list(buckets.values())


def top_suppliers(records: Iterable[HistoryRecord], limit: int = TOP_SUPPLIERS_LIMIT) -> List[Dict[str, object]]:
    """Suppliers ranked by total generated savings (any classification); ties keep first-seen order."""
    totals: Dict[str, Decimal] = {}
    for record in records:
        name = record.supplier_name or UNKNOWN_SUPPLIER
        totals[name] = totals.get(name, ZERO) + record.generated_savings

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"name": name, "value": value} for name, value in ranked[:limit]]


def products_negotiated(records: Iterable[HistoryRecord]) -> int:
    return len({r.product_description for r in records if r.product_description})


def available_products(records: Iterable[HistoryRecord]) -> List[str]:
    """Distinct product descriptions, first-seen order."""
    seen: List[str] = []
    for record in records:
        if record.product_description and record.product_description not in seen:
            seen.append(record.product_description)
    return seen


def available_periods(records: Iterable[HistoryRecord]) -> List[Dict[str, str]]:
    seen: List[str] = []
    for record in records:
        key = period_key(record)
        if key not in seen:
            seen.append(key)
    return [{"key": key, "label": period_label(key)} for key in seen]


def available_suppliers(records: Iterable[HistoryRecord]) -> List[str]:
    return sorted({r.supplier_name or UNKNOWN_SUPPLIER for r in records})


# ---------------------------------------------------------------------
# Report view model
# ---------------------------------------------------------------------
def build_report(
    records: List[HistoryRecord],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    supplier: Optional[str] = None,
    product: Optional[str] = None,
    limit: int = TOP_SUPPLIERS_LIMIT,
) -> Dict[str, object]:
    """Filter once and compute every BI block from the same filtered set."""
    filtered = filter_records(records, date_from, date_to, supplier=supplier, product=product)
    return {
        "records": filtered,
        "kpis": compute_kpis(filtered),
        "monthly_trend": monthly_trend(filtered),
        "top_suppliers": top_suppliers(filtered, limit=limit),
        "supplier_options": available_suppliers(records),
        "product_options": sorted(available_products(records)),
    }
