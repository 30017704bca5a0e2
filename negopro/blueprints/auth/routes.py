"""
Authentication Routes

Provides:
- /auth/login
- /auth/logout
- /auth/seed-admin (first system bootstrap)

Rules:
- Only active users may log in.
- There are no roles: a logged-in user can use every module.
"""

import logging

from flask import (
    Blueprint,
    render_template,
    redirect,
    url_for,
    flash,
    request,
)
from flask_login import (
    login_user,
    logout_user,
    login_required,
    current_user,
)

from ...extensions import db
from ...models import User
from ...utils import safe_next_url

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


# ============================================================
# LOGIN
# ============================================================

@auth_bp.route("/login", methods=["GET", "POST"])
def login():
    """
    Authenticate a user.

    - Only active users may log in
    - Credentials validated via password hash
    """

    if current_user.is_authenticated:
        return redirect(url_for("main.index"))

    if request.method == "POST":
        username = request.form.get("username", "").strip().lower()
        password = request.form.get("password", "")

        user = User.query.filter_by(username=username).first()

        if not user or not user.check_password(password):
            logger.info("Failed login for %s", username or "<empty>")
            flash("Correo o contraseña incorrectos.", "danger")
            return render_template("auth/login.html"), 401

        if not user.is_active:
            flash("La cuenta está inactiva.", "danger")
            return render_template("auth/login.html"), 403

        login_user(user)
        flash("¡Bienvenido!", "success")

        return redirect(safe_next_url(request.args.get("next"), "main.index"))

    return render_template("auth/login.html")


# ============================================================
# LOGOUT
# ============================================================

@auth_bp.route("/logout")
@login_required
def logout():
    """Log out the current user."""
    logout_user()
    flash("Sesión cerrada.", "info")
    return redirect(url_for("auth.login"))


# ============================================================
# SEED FIRST ADMIN (BOOTSTRAP)
# ============================================================

@auth_bp.route("/seed-admin", methods=["GET", "POST"])
def seed_admin():
    """
    Bootstrap the FIRST user of the system.

    - If ANY user already exists -> block
    """

    if User.query.count() > 0:
        flash("Ya existe un usuario en el sistema.", "warning")
        return redirect(url_for("auth.login"))

    if request.method == "POST":
        username = request.form.get("username", "").strip().lower()
        password = request.form.get("password", "")

        if not username or not password:
            flash("Ingrese correo y contraseña.", "danger")
            return render_template("auth/seed_admin.html")

        user = User(username=username, is_active=True)
        user.set_password(password)

        db.session.add(user)
        db.session.commit()
        logger.info("First user %s created", username)

        flash("Usuario creado. Inicie sesión.", "success")
        return redirect(url_for("auth.login"))

    return render_template("auth/seed_admin.html")
