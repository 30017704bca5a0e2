from datetime import datetime
from decimal import Decimal

from negopro.calculator import AVOIDANCE
from negopro.models import Product, Supplier


def test_directory_search(auth_client, supplier, other_supplier):
    html = auth_client.get("/suppliers/?q=PRV-001").get_data(as_text=True)
    assert "Suministros Andinos" in html
    assert "Papelería del Valle" not in html


def test_create_and_edit_supplier(auth_client):
    response = auth_client.post("/suppliers/new", data={"name": "Aseo Total", "tax_id": "800987654"})
    assert response.status_code == 302
    created = Supplier.query.filter_by(tax_id="800987654").one()

    auth_client.post(f"/suppliers/{created.id}/edit", data={"name": "Aseo Total S.A.", "tax_id": "800987654", "city": "Medellín"})
    updated = Supplier.query.filter_by(tax_id="800987654").one()
    assert updated.name == "Aseo Total S.A."
    assert updated.city == "Medellín"


def test_create_supplier_requires_unique_tax_id(auth_client, supplier):
    response = auth_client.post("/suppliers/new", data={"name": "Otro", "tax_id": "123456789"})
    assert response.status_code == 400
    assert Supplier.query.count() == 1


def test_add_product(auth_client, supplier):
    response = auth_client.post(
        f"/suppliers/{supplier.id}/products/add",
        data={"description": "Botas", "current_price": "145000,50", "monthly_consumption": "6", "classification": "Avoidance"},
    )
    assert response.status_code == 302

    boots = Product.query.filter_by(supplier_id=supplier.id, description="Botas").one()
    assert boots.current_price == Decimal("145000.50")
    assert boots.classification == AVOIDANCE

    auth_client.post(f"/suppliers/{supplier.id}/products/add", data={"description": "Botas", "current_price": "1"})
    assert Product.query.filter_by(supplier_id=supplier.id, description="Botas").count() == 1


def test_dashboard_shows_kpis(auth_client, supplier, add_history, product_named):
    gloves = product_named(supplier, "Guantes")
    add_history(gloves, datetime(2024, 3, 1), "1000", "900", "500")
    add_history(gloves, datetime(2024, 5, 1), "900", "850", "250")

    html = auth_client.get(f"/suppliers/{supplier.id}").get_data(as_text=True)
    assert "$ 750" in html
    assert "Productos negociados: <strong>1</strong>" in html
