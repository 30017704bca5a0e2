"""
negopro/blueprints/bi/routes.py

Business Intelligence report.

Query string (shared by the page and the CSV export):
- from / to: YYYY-MM-DD, inclusive whole days.
  Defaults: 1 January of the current year -> today.
- supplier: supplier display name (exact)
- product: product description (exact)

The page and the export are computed from the same filtered record set.
"""

from __future__ import annotations

from datetime import date

from flask import Blueprint, Response, current_app, flash, render_template, request
from flask_login import login_required

from ...analytics import build_report
from ...exports import export_filename, records_to_csv
from ...repository import fetch_history
from ...utils import parse_date

bi_bp = Blueprint("bi", __name__, url_prefix="/bi")


def _report_from_request() -> dict:
    today = date.today()
    date_from = parse_date(request.args.get("from"), default=date(today.year, 1, 1))
    date_to = parse_date(request.args.get("to"), default=today)
    supplier = (request.args.get("supplier") or "").strip() or None
    product = (request.args.get("product") or "").strip() or None

    records = fetch_history(date_from=date_from, date_to=date_to)
    report = build_report(
        records,
        date_from=date_from,
        date_to=date_to,
        supplier=supplier,
        product=product,
        limit=current_app.config.get("TOP_SUPPLIERS_LIMIT", 5),
    )
    report.update(
        date_from=date_from,
        date_to=date_to,
        selected_supplier=supplier,
        selected_product=product,
    )
    return report


@bi_bp.route("/")
@login_required
def report():
    data = _report_from_request()
    if data["date_from"] > data["date_to"]:
        flash("La fecha inicial es posterior a la fecha final.", "warning")

    return render_template("bi/report.html", **data)


@bi_bp.route("/export.csv")
@login_required
def export_csv():
    """Download the filtered record set as CSV."""
    data = _report_from_request()
    filename = export_filename(data["date_from"], data["date_to"])

    return Response(
        records_to_csv(data["records"]),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
