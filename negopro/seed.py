"""
negopro/seed.py

Seed a demo supplier catalogue.

Rules:
- Safe to run multiple times (idempotent).
- Suppliers are matched by NIT, products by (supplier, description).
- Existing prices are NOT overwritten: the stored current price is the source
  of truth once negotiations have been committed.

NOTE:
- Users are not seeded here. The first user is created through /auth/seed-admin.
"""

from __future__ import annotations

from decimal import Decimal

from .calculator import AVOIDANCE, SAVING
from .extensions import db
from .models import Product, Supplier


DEFAULT_SUPPLIERS = [
    # tax_id, code, name, city, category
    ("123456789", "PRV-001", "Suministros Industriales Andinos S.A.S.", "Bogotá", "Dotación y EPP"),
    ("900123456", "PRV-002", "Papelería del Valle Ltda.", "Cali", "Papelería"),
    ("800987654", "PRV-003", "Aseo Total Colombia S.A.", "Medellín", "Aseo y cafetería"),
]


DEFAULT_PRODUCTS = {
    # tax_id -> [(description, current_price, monthly_consumption, classification)]
    "123456789": [
        ("Guantes de nitrilo (caja x100)", Decimal("38000.00"), Decimal("40"), SAVING),
        ("Casco de seguridad dieléctrico", Decimal("52000.00"), Decimal("10"), SAVING),
        ("Botas punta de acero", Decimal("145000.00"), Decimal("6"), AVOIDANCE),
    ],
    "900123456": [
        ("Resma papel carta 75g", Decimal("21500.00"), Decimal("120"), SAVING),
        ("Tóner impresora láser", Decimal("289000.00"), Decimal("4"), AVOIDANCE),
    ],
    "800987654": [
        ("Detergente industrial 20L", Decimal("96000.00"), Decimal("8"), SAVING),
        ("Toallas de papel (paca x6)", Decimal("27800.00"), Decimal("50"), SAVING),
    ],
}


def seed_demo_data() -> None:
    """
    Create the demo suppliers and their products if they don't exist.

    Idempotent behavior:
    - If a supplier exists (by NIT), only its name/city/category are synced.
    - If a product exists under the supplier, it is left untouched.
    """
    for tax_id, code, name, city, category in DEFAULT_SUPPLIERS:
        supplier = Supplier.query.filter_by(tax_id=tax_id).first()
        if not supplier:
            supplier = Supplier(tax_id=tax_id, code=code, name=name, city=city, category=category)
            db.session.add(supplier)
            db.session.flush()
        else:
            supplier.name = name
            supplier.city = city
            supplier.category = category

        for description, price, consumption, classification in DEFAULT_PRODUCTS.get(tax_id, []):
            exists = Product.query.filter_by(supplier_id=supplier.id, description=description).first()
            if exists:
                continue
            db.session.add(
                Product(
                    supplier_id=supplier.id,
                    description=description,
                    current_price=price,
                    monthly_consumption=consumption,
                    classification=classification,
                )
            )

    db.session.commit()
