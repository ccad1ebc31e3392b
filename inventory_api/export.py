"""CSV export of ledger tables and reports (pandas)．"""
from __future__ import annotations

import io

import pandas as pd
from flask import Response

from .errors import InvalidInput
from .ledger import LedgerStore
from .reports import report_frame, window_bounds

EXPORT_KINDS = {"productos", "transacciones", "reporte-diario", "reporte-mensual"}


def export_frame(store: LedgerStore, kind: str) -> pd.DataFrame:
    if kind not in EXPORT_KINDS:
        raise InvalidInput(f"exportación desconocida: {kind}")

    if kind == "productos":
        rows = [p.to_dict() for p in store.list_products()]
        return pd.DataFrame(rows, columns=["id", "nombre", "descripcion", "precio", "cantidad"])
    if kind == "transacciones":
        rows = [t.to_dict() for t in store.list_transactions()]
        return pd.DataFrame(
            rows,
            columns=["id", "tipo", "cantidad", "producto_id", "usuario_id", "fecha_transaccion"],
        )
    window = "day" if kind == "reporte-diario" else "month"
    start, end = window_bounds(window, store.clock())
    return report_frame(store.window_rows(start, end))


def csv_response(frame: pd.DataFrame, kind: str) -> Response:
    buf = io.StringIO()
    frame.to_csv(buf, index=False)
    csv_bytes = buf.getvalue().encode()
    return Response(
        csv_bytes,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{kind}.csv"'},
    )
