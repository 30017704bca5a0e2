"""
negopro/exports.py

CSV export of the BI record set.

Columns (in order): Fecha, Proveedor, Producto, Tipo, Precio Anterior,
Precio Nuevo, Ahorro Generado.
"""

from __future__ import annotations

import io
from datetime import date
from typing import Iterable, Optional

import pandas as pd

from .calculator import AVOIDANCE, SAVING
from .normalize import HistoryRecord

CSV_COLUMNS = [
    "Fecha",
    "Proveedor",
    "Producto",
    "Tipo",
    "Precio Anterior",
    "Precio Nuevo",
    "Ahorro Generado",
]

CLASSIFICATION_LABELS = {
    SAVING: "Ahorro",
    AVOIDANCE: "Avoidance",
}


def records_frame(records: Iterable[HistoryRecord]) -> pd.DataFrame:
    rows = [
        {
            "Fecha": record.changed_at.strftime("%d/%m/%Y"),
            "Proveedor": record.supplier_name or "N/A",
            "Producto": record.product_description or "Sin descripción",
            "Tipo": CLASSIFICATION_LABELS.get(record.classification, record.classification),
            "Precio Anterior": float(record.previous_price),
            "Precio Nuevo": float(record.new_price),
            "Ahorro Generado": float(record.generated_savings),
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def records_to_csv(records: Iterable[HistoryRecord]) -> str:
    stream = io.StringIO()
    records_frame(records).to_csv(stream, index=False)
    return stream.getvalue()


def export_filename(date_from: Optional[date], date_to: Optional[date]) -> str:
    start = date_from.isoformat() if date_from else "inicio"
    end = date_to.isoformat() if date_to else "hoy"
    return f"Reporte_BI_{start}_al_{end}.csv"
