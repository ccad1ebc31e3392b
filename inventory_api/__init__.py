"""Inventory ledger API (Flask + SQLite)．

Products, stock-moving transactions and users, with low-stock and
daily/monthly profit reports derived from the transaction log．
"""
from __future__ import annotations

from typing import Any, Mapping

from flask import Flask
from werkzeug.exceptions import HTTPException

from .config import DEFAULTS
from .errors import InventoryError
from .ledger import LedgerStore
from .routes import bp, handle_http_error, handle_inventory_error, handle_unexpected_error

__all__ = ["create_app", "LedgerStore"]


def create_app(
    overrides: Mapping[str, Any] | None = None, store: LedgerStore | None = None
) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(DEFAULTS)
    app.config.from_prefixed_env("INVENTORY")
    if overrides:
        app.config.update(overrides)
    app.json.ensure_ascii = False

    app.extensions["ledger"] = store or LedgerStore.from_config(app.config)

    app.register_blueprint(bp)
    app.register_error_handler(InventoryError, handle_inventory_error)
    app.register_error_handler(HTTPException, handle_http_error)
    app.register_error_handler(Exception, handle_unexpected_error)
    return app
