"""
negopro/blueprints/main/routes.py

Home page: launcher for the three modules.
"""

from flask import Blueprint, render_template
from flask_login import login_required

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
@login_required
def index():
    return render_template("main/index.html")
