"""
NegotiationPro – Domain Models

- User: login identity (logged in or not; no roles).
- Supplier: canonical supplier. Its integer id is the only identifier used in
  URLs and foreign keys. Legacy identifiers (NIT / code) are resolved once by
  the legacy import (see migration.py).
- Product: supplier product with the stored current price (source of truth).
- PriceHistory: append-only log of committed negotiations. Rows are never
  updated or deleted by the application.

IMPORTANT:
- Money columns are Numeric(14, 2). Values are rounded to cents with _money()
  before they are stored.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from .calculator import SAVING
from .extensions import db


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _to_decimal(value) -> Decimal:
    """Convert Numeric/None to Decimal safely."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value))


# Largest magnitude any money column can hold (Numeric(16, 2))
MAX_STORED_AMOUNT = Decimal("1e14")


def _money(x: Decimal) -> Decimal:
    """Round to cents; raises ValueError when the amount cannot be stored."""
    value = _to_decimal(x)
    if not value.is_finite() or abs(value) >= MAX_STORED_AMOUNT:
        raise ValueError(f"Amount out of range: {value}")
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------
class User(UserMixin, db.Model):
    """System login user."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    username = db.Column(db.String(150), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User {self.username}>"


# ---------------------------------------------------------------------
# Suppliers & products
# ---------------------------------------------------------------------
class Supplier(db.Model):
    __tablename__ = "suppliers"

    id = db.Column(db.Integer, primary_key=True)

    # NIT (tax number). Optional: some suppliers only have an internal code.
    tax_id = db.Column(db.String(30), nullable=True, unique=True, index=True)
    code = db.Column(db.String(50), nullable=True, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False, index=True)

    city = db.Column(db.String(100))
    category = db.Column(db.String(120))
    contact_email = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    products = db.relationship(
        "Product",
        back_populates="supplier",
        cascade="all, delete-orphan",
        order_by="Product.description",
    )

    def __repr__(self):
        return f"<Supplier {self.id} - {self.name}>"


class Product(db.Model):
    __tablename__ = "products"

    id = db.Column(db.Integer, primary_key=True)

    supplier_id = db.Column(
        db.Integer,
        db.ForeignKey("suppliers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    description = db.Column(db.String(255), nullable=False)

    current_price = db.Column(db.Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    monthly_consumption = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    # Saving | Avoidance
    classification = db.Column(db.String(20), nullable=False, default=SAVING)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier = db.relationship("Supplier", back_populates="products")

    history = db.relationship(
        "PriceHistory",
        back_populates="product",
        lazy=True,
        order_by="PriceHistory.changed_at",
    )

    __table_args__ = (
        db.UniqueConstraint("supplier_id", "description", name="uq_supplier_product_description"),
    )

    def __repr__(self):
        return f"<Product {self.id} {self.description}>"


class PriceHistory(db.Model):
    """
    Append-only record of one committed negotiation line.

    generated_savings is a snapshot of the projected total savings at commit
    time; it is never recomputed.
    """

    __tablename__ = "price_history"

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    supplier_id = db.Column(
        db.Integer,
        db.ForeignKey("suppliers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Denormalized snapshots (kept even if product/supplier are renamed)
    supplier_name = db.Column(db.String(255), nullable=True, index=True)
    product_description = db.Column(db.String(255), nullable=True)

    classification = db.Column(db.String(20), nullable=False, default=SAVING, index=True)

    changed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    previous_price = db.Column(db.Numeric(14, 2), nullable=False)
    new_price = db.Column(db.Numeric(14, 2), nullable=False)
    generated_savings = db.Column(db.Numeric(16, 2), nullable=False, default=Decimal("0.00"))

    monthly_consumption = db.Column(db.Numeric(12, 2), nullable=True)
    duration_months = db.Column(db.Integer, nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username_snapshot = db.Column(db.String(150), nullable=True)

    # Set only for rows brought in by the legacy import (idempotency key)
    source_ref = db.Column(db.String(120), nullable=True, unique=True)

    product = db.relationship("Product", back_populates="history")
    supplier = db.relationship("Supplier")
    user = db.relationship("User")

    def __repr__(self):
        return f"<PriceHistory {self.id} {self.previous_price} -> {self.new_price}>"
