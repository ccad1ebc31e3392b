"""Read-only views derived from the ledger: low stock and window reports．

Nothing here takes a lock. Reports reflect whatever was committed when the
window query ran．
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Tuple

import pandas as pd

from .errors import InvalidInput
from .ledger import LedgerStore
from .models import Product, TransactionKind
from .validation import validate_non_negative_int

DEFAULT_THRESHOLD = 10
WINDOWS = ("day", "month")
REPORT_COLUMNS = ["producto_id", "producto", "total_entrada", "total_salida", "ganancia"]


def low_stock(store: LedgerStore, threshold: Any = DEFAULT_THRESHOLD) -> List[Product]:
    threshold = validate_non_negative_int(threshold, "min", default=DEFAULT_THRESHOLD)
    return store.products_below(threshold)


def window_bounds(window: str, now: datetime) -> Tuple[datetime, datetime]:
    """Half-open ``[start, end)`` bounds of the calendar day or month containing now．"""
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if window == "day":
        return start, start + timedelta(days=1)
    if window == "month":
        start = start.replace(day=1)
        if start.month == 12:
            return start, start.replace(year=start.year + 1, month=1)
        return start, start.replace(month=start.month + 1)
    raise InvalidInput(f"ventana debe ser una de {', '.join(WINDOWS)}")


def report_frame(rows: List[Tuple[Any, ...]]) -> pd.DataFrame:
    """Aggregate (product id, name, kind, quantity, price) rows per product．"""
    if not rows:
        return pd.DataFrame(columns=REPORT_COLUMNS)

    frame = pd.DataFrame(rows, columns=["producto_id", "producto", "tipo", "cantidad", "precio"])
    frame["valor"] = frame["cantidad"] * frame["precio"]

    totals = (
        frame.groupby(["producto_id", "producto", "tipo"])["valor"]
        .sum()
        .unstack("tipo", fill_value=0.0)
        .reindex(columns=[TransactionKind.INBOUND.value, TransactionKind.OUTBOUND.value], fill_value=0.0)
        .rename(columns={
            TransactionKind.INBOUND.value: "total_entrada",
            TransactionKind.OUTBOUND.value: "total_salida",
        })
        .rename_axis(columns=None)
        .reset_index()
    )
    totals["ganancia"] = totals["total_entrada"] - totals["total_salida"]
    totals = totals.sort_values("producto", kind="stable").reset_index(drop=True)
    return totals[REPORT_COLUMNS].round(2)


def window_report(
    store: LedgerStore, window: str, now: datetime | None = None
) -> List[Dict[str, Any]]:
    start, end = window_bounds(window, now or store.clock())
    totals = report_frame(store.window_rows(start, end))
    return [
        {
            "producto_id": int(row.producto_id),
            "producto": row.producto,
            "total_entrada": float(row.total_entrada),
            "total_salida": float(row.total_salida),
            "ganancia": float(row.ganancia),
        }
        for row in totals.itertuples(index=False)
    ]
