from negopro.extensions import db
from negopro.models import User


def test_pages_require_login(client):
    response = client.get("/bi/")
    assert response.status_code == 302
    assert "/auth/login" in response.headers["Location"]


def test_login_rejects_bad_password(client, user):
    response = client.post("/auth/login", data={"username": user.username, "password": "nope"})
    assert response.status_code == 401
    assert "Correo o contraseña incorrectos." in response.get_data(as_text=True)


def test_login_ignores_external_next(client, user):
    response = client.post(
        "/auth/login?next=https://evil.example.com/",
        data={"username": "COMPRAS@example.com", "password": "secret"},
    )
    assert response.status_code == 302
    assert response.headers["Location"] == "/"


def test_inactive_user_cannot_log_in(client, user):
    user.is_active = False

    db.session.commit()
    response = client.post("/auth/login", data={"username": user.username, "password": "secret"})
    assert response.status_code == 403


def test_seed_admin_only_once(client):
    response = client.post("/auth/seed-admin", data={"username": "Admin@Example.com", "password": "pw"})
    assert response.status_code == 302
    assert User.query.filter_by(username="admin@example.com").count() == 1

    response = client.post("/auth/seed-admin", data={"username": "other@example.com", "password": "pw"})
    assert response.status_code == 302
    assert User.query.count() == 1


def test_home_lists_modules(auth_client):
    html = auth_client.get("/").get_data(as_text=True)
    assert "Nueva Negociación" in html
    assert "Business Intelligence" in html
