from decimal import Decimal

import pytest

from negopro import create_app
from negopro.calculator import AVOIDANCE, SAVING
from negopro.extensions import db
from negopro.models import PriceHistory, Product, Supplier, User


@pytest.fixture
def app():
    app = create_app("config.TestConfig")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user(app):
    user = User(username="compras@example.com", is_active=True)
    user.set_password("secret")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def auth_client(client, user):
    response = client.post(
        "/auth/login",
        data={"username": "compras@example.com", "password": "secret"},
    )
    assert response.status_code == 302
    return client


@pytest.fixture
def supplier(app):
    supplier = Supplier(tax_id="123456789", code="PRV-001", name="Suministros Andinos", city="Bogotá")
    supplier.products = [
        Product(
            description="Guantes",
            current_price=Decimal("1000.00"),
            monthly_consumption=Decimal("10"),
            classification=SAVING,
        ),
        Product(
            description="Cascos",
            current_price=Decimal("500.00"),
            monthly_consumption=Decimal("4"),
            classification=AVOIDANCE,
        ),
    ]
    db.session.add(supplier)
    db.session.commit()
    return supplier


@pytest.fixture
def other_supplier(app):
    supplier = Supplier(tax_id="900123456", name="Papelería del Valle")
    supplier.products = [
        Product(description="Resma carta", current_price=Decimal("20000.00"), monthly_consumption=Decimal("5")),
    ]
    db.session.add(supplier)
    db.session.commit()
    return supplier


@pytest.fixture
def add_history(app):
    """Insert a committed negotiation row directly."""

    def _add(product, changed_at, previous, new, savings, classification=SAVING):
        row = PriceHistory(
            product_id=product.id,
            supplier_id=product.supplier_id,
            supplier_name=product.supplier.name,
            product_description=product.description,
            classification=classification,
            changed_at=changed_at,
            previous_price=Decimal(previous),
            new_price=Decimal(new),
            generated_savings=Decimal(savings),
        )
        db.session.add(row)
        db.session.commit()
        return row

    return _add


@pytest.fixture
def product_named():
    def _find(supplier, description):
        return next(p for p in supplier.products if p.description == description)

    return _find
