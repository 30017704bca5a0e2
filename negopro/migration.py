"""
negopro/migration.py

One-time import of the previous backend's export (JSON).

Expected document:

    {
      "suppliers": [{"id": ..., "nit": ..., "codigo": ..., "proveedor": ...}, ...],
      "products":  [{"id": ..., "supplier_id": ..., "descripcion": ..., "precio_actual": ...,
                     "cantidad_mensual": ..., "tipo": "Ahorro"}, ...],
      "history":   [{"id": ..., "product_id": ..., "fecha_cambio": ..., "precio_anterior": ...,
                     "precio_nuevo": ..., "ahorro_generado": ...}, ...]
    }

Supplier identity:
- The old data referenced suppliers by id, NIT, code or display name
  depending on the screen. Every one of those keys is mapped here onto the
  canonical Supplier.id, and only here. The running application never does
  fallback matching.

Rules:
- Idempotent: suppliers matched by NIT / code / name, products by
  (supplier, description), history rows by source_ref ("legacy:<id>").
- One transaction: a failure rolls back the whole import.
- Every section must be a list of objects; anything else rejects the import
  before a row is written.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from .calculator import MAX_QUANTITY, coerce_number
from .extensions import db
from .models import PriceHistory, Product, Supplier, _money
from .normalize import (
    legacy_supplier_keys,
    legacy_supplier_name,
    normalize_classification,
    record_from_mapping,
)

logger = logging.getLogger(__name__)


class LegacyImportError(Exception):
    """Raised when the legacy document cannot be read or stored."""


def load_legacy_file(path: str | Path) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            document = json.load(fh)
    except (OSError, ValueError) as exc:
        raise LegacyImportError(f"Cannot read {path}: {exc}") from exc

    if not isinstance(document, dict):
        raise LegacyImportError("Legacy export must be a JSON object")
    return document


def _rows(document: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    rows = document.get(key) or []
    if not isinstance(rows, list) or not all(isinstance(row, Mapping) for row in rows):
        raise LegacyImportError(f'"{key}" must be a list of objects')
    return rows


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class _SupplierResolver:
    """Maps every legacy supplier key (id / NIT / code / name) to a canonical Supplier."""

    def __init__(self):
        self.by_key: Dict[str, Supplier] = {}
        self.created = 0

    def register(self, row: Mapping[str, Any]) -> Supplier:
        keys = legacy_supplier_keys(row)
        tax_id = _text(row.get("nit") or row.get("NIT"))
        code = _text(row.get("codigo") or row.get("code"))
        name = legacy_supplier_name(row) or f"Proveedor {keys[0] if keys else 'sin identificar'}"

        supplier = None
        if tax_id:
            supplier = Supplier.query.filter_by(tax_id=tax_id).first()
        if supplier is None and code:
            supplier = Supplier.query.filter_by(code=code).first()
        if supplier is None:
            supplier = Supplier.query.filter_by(name=name).first()

        if supplier is None:
            supplier = Supplier(
                tax_id=tax_id,
                code=code,
                name=name,
                city=_text(row.get("ciudad") or row.get("city")),
                category=_text(row.get("categoria") or row.get("category")),
            )
            db.session.add(supplier)
            db.session.flush()
            self.created += 1

        for key in keys:
            self.by_key[key] = supplier
        self.by_key[name] = supplier
        return supplier

    def resolve(self, ref: Any, name: Any = None) -> Optional[Supplier]:
        ref = _text(ref)
        if ref and ref in self.by_key:
            return self.by_key[ref]
        name = _text(name)
        if name:
            if name in self.by_key:
                return self.by_key[name]
            supplier = Supplier.query.filter_by(name=name).first()
            if supplier is not None:
                self.by_key[name] = supplier
            return supplier
        return None


def import_legacy_document(document: Mapping[str, Any]) -> Dict[str, int]:
    """
    Import suppliers, products and history from a legacy export.

    Returns counters: suppliers_created, products_created, history_created,
    history_skipped (already imported or without a resolvable product).
    """
    if not isinstance(document, Mapping):
        raise LegacyImportError("Legacy export must be a JSON object")
    supplier_rows = _rows(document, "suppliers")
    product_rows = _rows(document, "products")
    history_rows = _rows(document, "history")

    resolver = _SupplierResolver()
    products_by_ref: Dict[str, Product] = {}
    summary = {"suppliers_created": 0, "products_created": 0, "history_created": 0, "history_skipped": 0}

    try:
        for row in supplier_rows:
            resolver.register(row)

        for row in product_rows:
            supplier = resolver.resolve(row.get("supplier_id"), row.get("supplier_name"))
            description = _text(row.get("descripcion") or row.get("description"))
            if supplier is None or description is None:
                logger.warning("Legacy product %s skipped: unresolved supplier or description", row.get("id"))
                continue

            product = Product.query.filter_by(supplier_id=supplier.id, description=description).first()
            if product is None:
                product = Product(
                    supplier_id=supplier.id,
                    description=description,
                    current_price=_money(coerce_number(row.get("precio_actual", row.get("current_price")))),
                    monthly_consumption=coerce_number(
                        row.get("cantidad_mensual", row.get("monthly_consumption")), limit=MAX_QUANTITY
                    ),
                    classification=normalize_classification(row.get("tipo") or row.get("classification")),
                )
                db.session.add(product)
                db.session.flush()
                summary["products_created"] += 1

            if _text(row.get("id")):
                products_by_ref[_text(row.get("id"))] = product

        for row in history_rows:
            legacy_id = _text(row.get("id"))
            source_ref = f"legacy:{legacy_id}" if legacy_id else None
            if source_ref and PriceHistory.query.filter_by(source_ref=source_ref).first():
                summary["history_skipped"] += 1
                continue

            record = record_from_mapping(row)
            product = products_by_ref.get(_text(row.get("product_id")) or "")
            if product is None:
                logger.warning("Legacy history %s skipped: unknown product %s", legacy_id, row.get("product_id"))
                summary["history_skipped"] += 1
                continue

            # flat rows carry no classification; the product's one applied then
            nested = row.get("Neg_productos")
            if not isinstance(nested, Mapping):
                nested = {}
            has_classification = bool(row.get("tipo") or row.get("classification") or nested.get("tipo"))
            classification = record.classification if has_classification else product.classification

            db.session.add(
                PriceHistory(
                    product_id=product.id,
                    supplier_id=product.supplier_id,
                    supplier_name=record.supplier_name or product.supplier.name,
                    product_description=record.product_description or product.description,
                    classification=classification,
                    changed_at=record.changed_at,
                    previous_price=_money(record.previous_price),
                    new_price=_money(record.new_price),
                    generated_savings=_money(record.generated_savings),
                    source_ref=source_ref,
                )
            )
            summary["history_created"] += 1

        db.session.commit()
    except (SQLAlchemyError, ValueError) as exc:
        db.session.rollback()
        logger.exception("Legacy import failed; nothing was stored")
        raise LegacyImportError(str(exc)) from exc

    summary["suppliers_created"] = resolver.created
    logger.info("Legacy import finished: %s", summary)
    return summary
