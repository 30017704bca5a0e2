"""
negopro/blueprints/negotiation/routes.py

Negotiation routes.

Includes:
- Start page: search and select a supplier
- Negotiation page: products table with the calculator per product, bulk
  negotiator, draft reset, projected totals and commit
- History page: committed negotiations of one supplier, filterable by product
  and by month-year period

Draft:
- Edited lines live in the user's session under "negotiation:<supplier_id>"
  until they are committed or reset. Nothing is stored in the database before
  the commit.

IMPORTANT:
- The commit is all-or-nothing (see repository.commit_negotiation). On
  failure the draft is kept so the user can retry.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, flash, redirect, render_template, request, session, url_for
from flask_login import current_user, login_required

from ...analytics import (
    available_periods,
    available_products,
    compute_kpis,
    filter_by_period,
    filter_records,
    period_label,
)
from ...calculator import NegotiationSession
from ...models import Supplier
from ...repository import (
    NegotiationCommitError,
    commit_negotiation,
    fetch_history,
    fetch_products_for_supplier,
    search_suppliers,
    supplier_or_404,
)

logger = logging.getLogger(__name__)

negotiation_bp = Blueprint("negotiation", __name__, url_prefix="/negotiation")


# ---------------------------------------------------------------------
# Draft helpers
# ---------------------------------------------------------------------
def _draft_key(supplier_id: int) -> str:
    return f"negotiation:{supplier_id}"


def _parse_optional_int(value: str | None) -> int | None:
    """Parse optional int from form/query."""
    if value is None:
        return None
    raw = str(value).strip()
    if raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _load_session(supplier: Supplier) -> NegotiationSession:
    """Stored products plus the user's draft for this supplier."""
    return NegotiationSession.from_products(
        supplier.id,
        fetch_products_for_supplier(supplier.id),
        draft=session.get(_draft_key(supplier.id)),
        default_months=current_app.config.get("DEFAULT_DURATION_MONTHS", 12),
    )


def _save_draft(negotiation: NegotiationSession) -> None:
    draft = negotiation.to_draft()
    if draft:
        session[_draft_key(negotiation.supplier_id)] = draft
    else:
        session.pop(_draft_key(negotiation.supplier_id), None)


def _clear_draft(supplier_id: int) -> None:
    session.pop(_draft_key(supplier_id), None)


# ---------------------------------------------------------------------
# Start
# ---------------------------------------------------------------------
@negotiation_bp.route("/")
@login_required
def start():
    """Pick the supplier to negotiate with."""
    q = (request.args.get("q") or "").strip()
    suppliers = search_suppliers(q)
    return render_template("negotiation/start.html", suppliers=suppliers, q=q)


# ---------------------------------------------------------------------
# Negotiation page
# ---------------------------------------------------------------------
@negotiation_bp.route("/<int:supplier_id>", methods=["GET", "POST"])
@login_required
def negotiate(supplier_id: int):
    """
    Negotiation workspace for one supplier.

    POST actions (form field "action"):
    - line:   apply the calculator form to one product (product_id)
    - bulk:   one percentage + classification for every product (overwrites)
    - reset:  discard the draft
    - commit: store every changed line
    """
    supplier = supplier_or_404(supplier_id)
    negotiation = _load_session(supplier)

    if request.method == "POST":
        action = (request.form.get("action") or "").strip()

        if action == "line":
            line = negotiation.get_line(_parse_optional_int(request.form.get("product_id")) or 0)
            if line is None:
                flash("Producto no válido para este proveedor.", "danger")
            else:
                line.apply(request.form)
                _save_draft(negotiation)

        elif action == "bulk":
            if not negotiation.lines:
                flash("Este proveedor no tiene productos.", "warning")
            else:
                negotiation.apply_bulk(
                    request.form.get("percentage"),
                    request.form.get("classification"),
                )
                _save_draft(negotiation)
                flash("Se aplicó la negociación masiva a todos los productos.", "info")

        elif action == "reset":
            _clear_draft(supplier.id)
            flash("Se descartaron los cambios sin guardar.", "info")

        elif action == "commit":
            changed = negotiation.changed_lines()
            if not changed:
                flash("No hay cambios para guardar.", "warning")
                return redirect(url_for("negotiation.negotiate", supplier_id=supplier.id))

            try:
                commit_negotiation(supplier, changed, user=current_user._get_current_object())
            except NegotiationCommitError:
                logger.warning("Commit failed for supplier %s; draft kept", supplier_id)
                flash("No se pudo guardar la negociación. No se guardó ningún cambio.", "danger")
                return redirect(url_for("negotiation.negotiate", supplier_id=supplier_id))

            _clear_draft(supplier_id)
            flash(f"Negociación guardada ({len(changed)} producto(s)).", "success")
            return redirect(url_for("negotiation.history", supplier_id=supplier_id))

        else:
            flash("Acción no válida.", "danger")

        return redirect(url_for("negotiation.negotiate", supplier_id=supplier.id))

    return render_template(
        "negotiation/negotiate.html",
        supplier=supplier,
        negotiation=negotiation,
        totals=negotiation.totals(),
        changed_count=len(negotiation.changed_lines()),
    )


# ---------------------------------------------------------------------
# History
# ---------------------------------------------------------------------
@negotiation_bp.route("/<int:supplier_id>/history")
@login_required
def history(supplier_id: int):
    """Committed negotiations of one supplier (?product=, ?period=YYYY-MM)."""
    supplier = supplier_or_404(supplier_id)

    product = (request.args.get("product") or "").strip() or None
    period = (request.args.get("period") or "").strip() or None

    all_records = fetch_history(supplier_id=supplier.id, newest_first=True)
    period_options = available_periods(all_records)
    if period not in {option["key"] for option in period_options}:
        period = None

    records = filter_by_period(filter_records(all_records, product=product), period)

    return render_template(
        "negotiation/history.html",
        supplier=supplier,
        records=records,
        kpis=compute_kpis(records),
        product_options=available_products(all_records),
        period_options=period_options,
        selected_product=product,
        selected_period=period,
        selected_period_label=period_label(period) if period else None,
    )
