"""
negopro/normalize.py

Canonical history records.

Every computation in analytics.py runs on HistoryRecord instances only. This
module is the single place where source rows are mapped into that shape:

- ORM rows (PriceHistory): denormalized snapshots first, then the joined
  Product / Supplier when a snapshot is missing.
- Legacy mappings exported from the previous backend (Spanish field names,
  nested product object, several names for the same field).

Classification rules:
- "Saving" / "Ahorro" (any case)  -> SAVING
- "Avoidance" (any case)          -> AVOIDANCE
- missing / empty                 -> SAVING
- anything else is kept verbatim (counted only as a negotiation)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from .calculator import AVOIDANCE, SAVING, coerce_number

UNKNOWN_SUPPLIER = "Desconocido"

_CLASSIFICATION_ALIASES = {
    "saving": SAVING,
    "savings": SAVING,
    "ahorro": SAVING,
    "avoidance": AVOIDANCE,
}


@dataclass(frozen=True)
class HistoryRecord:
    """One committed negotiation, as seen by the aggregator."""

    id: Optional[int]
    changed_at: datetime
    previous_price: Decimal
    new_price: Decimal
    generated_savings: Decimal
    classification: str
    product_id: Optional[int]
    product_description: Optional[str]
    supplier_id: Optional[int]
    supplier_name: Optional[str]

    @property
    def change_date(self) -> date:
        return self.changed_at.date()

    @property
    def unit_savings(self) -> Decimal:
        return self.previous_price - self.new_price

    @property
    def is_reduction(self) -> bool:
        return self.new_price < self.previous_price


# ---------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------
def normalize_classification(value: Any) -> str:
    raw = (str(value).strip() if value is not None else "")
    if raw == "":
        return SAVING
    return _CLASSIFICATION_ALIASES.get(raw.lower(), raw)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse datetime/date/ISO-8601 text (a trailing "Z" is accepted). Timezone info is dropped."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw).replace(tzinfo=None)
    except ValueError:
        return None


def _first(mapping: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among alias keys."""
    for key in keys:
        value = mapping.get(key)
        if value is not None and value != "":
            return value
    return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------
# ORM rows
# ---------------------------------------------------------------------
def record_from_row(row: Any) -> HistoryRecord:
    """Map a PriceHistory row (with optional joined product/supplier) to a HistoryRecord."""
    product = getattr(row, "product", None)
    supplier = getattr(product, "supplier", None) if product is not None else None

    supplier_name = _clean_text(row.supplier_name) or _clean_text(getattr(supplier, "name", None))
    description = _clean_text(row.product_description) or _clean_text(getattr(product, "description", None))

    classification = row.classification
    if not classification and product is not None:
        classification = product.classification

    supplier_id = row.supplier_id
    if supplier_id is None and product is not None:
        supplier_id = product.supplier_id

    return HistoryRecord(
        id=row.id,
        changed_at=parse_timestamp(row.changed_at) or datetime.min,
        previous_price=coerce_number(row.previous_price, limit=None),
        new_price=coerce_number(row.new_price, limit=None),
        generated_savings=coerce_number(row.generated_savings, limit=None),
        classification=normalize_classification(classification),
        product_id=row.product_id,
        product_description=description,
        supplier_id=supplier_id,
        supplier_name=supplier_name,
    )


def records_from_rows(rows: Iterable[Any]) -> List[HistoryRecord]:
    return [record_from_row(row) for row in rows]


# ---------------------------------------------------------------------
# Legacy mappings
# ---------------------------------------------------------------------
def legacy_supplier_name(row: Mapping[str, Any]) -> Optional[str]:
    return _clean_text(_first(row, "proveedor", "nombre", "razon_social", "name", "supplier_name"))


def legacy_supplier_keys(row: Mapping[str, Any]) -> List[str]:
    """All identifiers a legacy supplier row may be referenced by."""
    keys = []
    for field in ("id", "nit", "NIT", "codigo", "code"):
        value = _clean_text(row.get(field))
        if value and value not in keys:
            keys.append(value)
    return keys


def record_from_mapping(row: Mapping[str, Any]) -> HistoryRecord:
    """
    Map a legacy history mapping to a HistoryRecord.

    Accepts the original backend shape, e.g.:
        {"id": 7, "fecha_cambio": "2024-03-01T10:00:00Z", "precio_anterior": 1000,
         "precio_nuevo": 900, "ahorro_generado": 6000, "supplier_name": "ACME",
         "Neg_productos": {"descripcion": "Guantes", "tipo": "Ahorro", "supplier_name": "ACME"}}
    as well as the canonical English field names.
    """
    product = _first(row, "Neg_productos", "product") or {}
    if not isinstance(product, Mapping):
        product = {}

    changed_at = parse_timestamp(_first(row, "changed_at", "fecha_cambio", "fecha", "created_at"))

    return HistoryRecord(
        id=_first(row, "id"),
        changed_at=changed_at or datetime.min,
        previous_price=coerce_number(_first(row, "previous_price", "precio_anterior"), limit=None),
        new_price=coerce_number(_first(row, "new_price", "precio_nuevo"), limit=None),
        generated_savings=coerce_number(_first(row, "generated_savings", "ahorro_generado"), limit=None),
        classification=normalize_classification(
            _first(row, "classification", "tipo") or _first(product, "classification", "tipo")
        ),
        product_id=_first(row, "product_id"),
        product_description=_clean_text(
            _first(row, "product_description", "descripcion") or _first(product, "description", "descripcion")
        ),
        supplier_id=None,
        supplier_name=_clean_text(
            _first(row, "supplier_name", "proveedor") or _first(product, "supplier_name", "proveedor")
        ),
    )
