"""
negopro/repository.py

Storage boundary for negotiations.

Reads:
- fetch_history(): committed negotiations as canonical HistoryRecord list.
- fetch_products_for_supplier(), find_supplier(), search_suppliers().
- supplier_or_404(): find_supplier() for routes.
  A failed read is logged, flashed and returns an empty result (no retry).

Writes:
- commit_negotiation(): ONE transaction for the whole batch. Either every
  product update and every history row is stored, or nothing is. On failure
  the session is rolled back and NegotiationCommitError is raised.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional

from flask import abort, flash, has_request_context
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from .calculator import SAVING, NegotiationLine
from .extensions import db
from .models import PriceHistory, Product, Supplier, User, _money
from .normalize import HistoryRecord, records_from_rows

logger = logging.getLogger(__name__)


class NegotiationCommitError(Exception):
    """Raised when a negotiation batch could not be stored (nothing was stored)."""


# ---------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------
def _read_failed(message: str, *args) -> None:
    """Log a failed read and reset the session; the page shows an empty state."""
    logger.exception(message, *args)
    db.session.rollback()
    if has_request_context():
        flash("No se pudieron cargar los datos. Intente de nuevo.", "danger")


def find_supplier(supplier_id: int) -> Optional[Supplier]:
    try:
        return db.session.get(Supplier, supplier_id)
    except SQLAlchemyError:
        _read_failed("Error loading supplier %s", supplier_id)
        return None


def supplier_or_404(supplier_id: int) -> Supplier:
    """find_supplier() for routes: a missing or unreadable supplier is a 404."""
    supplier = find_supplier(supplier_id)
    if supplier is None:
        abort(404)
    return supplier


def search_suppliers(term: str = "") -> List[Supplier]:
    """Suppliers whose name, NIT or code contains term (case-insensitive)."""
    q = Supplier.query
    term = (term or "").strip()
    if term:
        like = f"%{term}%"
        q = q.filter(
            or_(
                Supplier.name.ilike(like),
                Supplier.tax_id.ilike(like),
                Supplier.code.ilike(like),
                Supplier.category.ilike(like),
            )
        )
    try:
        return q.order_by(Supplier.name.asc()).all()
    except SQLAlchemyError:
        _read_failed("Error loading suppliers")
        return []


def fetch_products_for_supplier(supplier_id: int) -> List[Product]:
    try:
        return (
            Product.query.filter_by(supplier_id=supplier_id)
            .order_by(Product.description.asc(), Product.id.asc())
            .all()
        )
    except SQLAlchemyError:
        _read_failed("Error loading products for supplier %s", supplier_id)
        return []


def fetch_history(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    supplier_id: Optional[int] = None,
    newest_first: bool = False,
) -> List[HistoryRecord]:
    """
    Committed negotiations as canonical records.

    The date window is applied in SQL on whole days (inclusive); analytics
    applies the same rule again on the normalized records.
    """
    q = PriceHistory.query.options(
        joinedload(PriceHistory.product).joinedload(Product.supplier),
    )

    if date_from is not None:
        q = q.filter(PriceHistory.changed_at >= datetime.combine(date_from, time.min))
    if date_to is not None:
        q = q.filter(PriceHistory.changed_at < datetime.combine(date_to + timedelta(days=1), time.min))
    if supplier_id is not None:
        q = q.outerjoin(Product, Product.id == PriceHistory.product_id).filter(
            or_(
                PriceHistory.supplier_id == supplier_id,
                (PriceHistory.supplier_id.is_(None)) & (Product.supplier_id == supplier_id),
            )
        )

    if newest_first:
        q = q.order_by(PriceHistory.changed_at.desc(), PriceHistory.id.desc())
    else:
        q = q.order_by(PriceHistory.changed_at.asc(), PriceHistory.id.asc())

    try:
        rows = q.all()
    except SQLAlchemyError:
        _read_failed("Error loading price history")
        return []

    return records_from_rows(rows)


# ---------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------
def commit_negotiation(
    supplier: Supplier,
    lines: Iterable[NegotiationLine],
    user: Optional[User] = None,
) -> List[PriceHistory]:
    """
    Store the changed lines of a negotiation session.

    For every line:
    - Saving: the product's current price becomes the negotiated price.
    - Avoidance: the current price is left unchanged.
    - One PriceHistory row with generated_savings = line.total_savings.

    Returns the created history rows. Raises NegotiationCommitError (after
    rollback) when any write fails.
    """
    changed_at = datetime.utcnow()
    supplier_id = supplier.id
    username = user.username if user is not None else None
    created: List[PriceHistory] = []

    try:
        for line in lines:
            product = db.session.get(Product, line.product_id)
            if product is None or product.supplier_id != supplier_id:
                raise NegotiationCommitError(f"Product {line.product_id} does not belong to supplier {supplier_id}")

            entry = PriceHistory(
                product_id=product.id,
                supplier_id=supplier_id,
                supplier_name=supplier.name,
                product_description=product.description,
                classification=line.classification,
                changed_at=changed_at,
                previous_price=_money(line.current_price),
                new_price=_money(line.negotiated_price),
                generated_savings=_money(line.total_savings),
                monthly_consumption=line.monthly_consumption,
                duration_months=line.duration_months,
                user_id=user.id if user is not None else None,
                username_snapshot=username,
            )
            db.session.add(entry)

            if line.classification == SAVING:
                product.current_price = _money(line.negotiated_price)

            created.append(entry)

        db.session.flush()
        db.session.commit()
    except NegotiationCommitError:
        db.session.rollback()
        logger.warning("Negotiation for supplier %s rejected; batch rolled back", supplier_id)
        raise
    except (SQLAlchemyError, ValueError) as exc:
        # ValueError: an amount that does not fit its money column
        db.session.rollback()
        logger.exception("Negotiation commit failed for supplier %s; batch rolled back", supplier_id)
        raise NegotiationCommitError(str(exc)) from exc

    logger.info(
        "Negotiation committed for supplier %s: %d line(s) by %s",
        supplier_id,
        len(created),
        username or "anonymous",
    )
    return created
