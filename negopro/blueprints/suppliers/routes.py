"""
negopro/blueprints/suppliers/routes.py

Supplier directory routes.

Includes:
- Directory with search by name / NIT / code / category
- Supplier dashboard: KPIs of the supplier's committed negotiations,
  distinct products negotiated and the record table (newest first)
- Create / edit supplier
- Add product to a supplier

IMPORTANT:
- Suppliers are addressed by their integer id only.
- Prices of existing products change only through a committed negotiation.
"""

from __future__ import annotations

import logging

from flask import Blueprint, flash, redirect, render_template, request, url_for
from flask_login import login_required
from sqlalchemy.exc import IntegrityError

from ...analytics import compute_kpis, products_negotiated
from ...calculator import MAX_QUANTITY, ZERO, coerce_number, normalize_classification
from ...extensions import db
from ...models import Product, Supplier, _money
from ...repository import fetch_history, fetch_products_for_supplier, search_suppliers, supplier_or_404

logger = logging.getLogger(__name__)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/suppliers")


# ---------------------------------------------------------------------
# Form helpers
# ---------------------------------------------------------------------
def _supplier_fields_from_form() -> dict:
    return {
        "tax_id": (request.form.get("tax_id") or "").strip() or None,
        "code": (request.form.get("code") or "").strip() or None,
        "name": (request.form.get("name") or "").strip(),
        "city": (request.form.get("city") or "").strip() or None,
        "category": (request.form.get("category") or "").strip() or None,
        "contact_email": (request.form.get("contact_email") or "").strip() or None,
    }


# ---------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------
@suppliers_bp.route("/")
@login_required
def suppliers_list():
    """Supplier directory with optional free-text search (?q=)."""
    q = (request.args.get("q") or "").strip()
    suppliers = search_suppliers(q)
    return render_template("suppliers/list.html", suppliers=suppliers, q=q)


@suppliers_bp.route("/<int:supplier_id>")
@login_required
def supplier_dashboard(supplier_id: int):
    supplier = supplier_or_404(supplier_id)

    records = fetch_history(supplier_id=supplier.id, newest_first=True)
    kpis = compute_kpis(records)

    return render_template(
        "suppliers/dashboard.html",
        supplier=supplier,
        products=fetch_products_for_supplier(supplier.id),
        records=records,
        kpis=kpis,
        products_negotiated=products_negotiated(records),
    )


# ---------------------------------------------------------------------
# Create / edit
# ---------------------------------------------------------------------
@suppliers_bp.route("/new", methods=["GET", "POST"])
@login_required
def supplier_create():
    if request.method == "POST":
        fields = _supplier_fields_from_form()

        if not fields["name"]:
            flash("El nombre del proveedor es obligatorio.", "danger")
            return render_template("suppliers/form.html", supplier=None, form=fields), 400

        supplier = Supplier(**fields)
        db.session.add(supplier)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            flash("Ya existe un proveedor con ese NIT o código.", "danger")
            return render_template("suppliers/form.html", supplier=None, form=fields), 400

        logger.info("Supplier %s created (%s)", supplier.id, supplier.name)
        flash("Proveedor creado.", "success")
        return redirect(url_for("suppliers.supplier_dashboard", supplier_id=supplier.id))

    return render_template("suppliers/form.html", supplier=None, form={})


@suppliers_bp.route("/<int:supplier_id>/edit", methods=["GET", "POST"])
@login_required
def supplier_edit(supplier_id: int):
    supplier = supplier_or_404(supplier_id)

    if request.method == "POST":
        fields = _supplier_fields_from_form()

        if not fields["name"]:
            flash("El nombre del proveedor es obligatorio.", "danger")
            return redirect(url_for("suppliers.supplier_edit", supplier_id=supplier_id))

        for key, value in fields.items():
            setattr(supplier, key, value)

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            flash("Ya existe un proveedor con ese NIT o código.", "danger")
            return redirect(url_for("suppliers.supplier_edit", supplier_id=supplier_id))

        flash("Proveedor actualizado.", "success")
        return redirect(url_for("suppliers.supplier_dashboard", supplier_id=supplier_id))

    return render_template("suppliers/form.html", supplier=supplier, form={})


# ---------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------
@suppliers_bp.route("/<int:supplier_id>/products/add", methods=["POST"])
@login_required
def product_add(supplier_id: int):
    """Add one product to the supplier's catalogue."""
    supplier = supplier_or_404(supplier_id)

    description = (request.form.get("description") or "").strip()
    current_price = coerce_number(request.form.get("current_price"))
    monthly_consumption = coerce_number(request.form.get("monthly_consumption"), limit=MAX_QUANTITY)
    classification = normalize_classification(request.form.get("classification"))

    if not description:
        flash("La descripción del producto es obligatoria.", "danger")
        return redirect(url_for("suppliers.supplier_dashboard", supplier_id=supplier.id))
    if current_price < ZERO or monthly_consumption < ZERO:
        flash("El precio y el consumo no pueden ser negativos.", "danger")
        return redirect(url_for("suppliers.supplier_dashboard", supplier_id=supplier.id))

    product = Product(
        supplier_id=supplier.id,
        description=description,
        current_price=_money(current_price),
        monthly_consumption=monthly_consumption,
        classification=classification,
    )
    db.session.add(product)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        flash("Este proveedor ya tiene un producto con esa descripción.", "warning")
        return redirect(url_for("suppliers.supplier_dashboard", supplier_id=supplier.id))

    flash("Producto agregado.", "success")
    return redirect(url_for("suppliers.supplier_dashboard", supplier_id=supplier.id))
