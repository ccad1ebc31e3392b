# inventory_api_main.py
"""Inventory ledger REST API using Flask + SQLite: process entry point．

Endpoints (see inventory_api.routes):
1. GET/POST /productos       – list or create products
2. POST     /registrar       – register a user
3. POST     /transacciones   – record an entrada/salida and move stock
4. GET      /stock-bajo      – products below a stock threshold
5. GET      /reporte-diario  – today's entrada/salida/ganancia per product
6. GET      /reporte-mensual – the same for the current month
7. GET      /exportar/<tipo> – CSV export

Startup waits for the database with bounded retries; if it never becomes
reachable the process exits with status 1 instead of serving requests．
"""
from __future__ import annotations

import logging
import signal
import sys

from inventory_api import create_app
from inventory_api.bootstrap import prepare_store
from inventory_api.config import configure_logging
from inventory_api.errors import InventoryError

logger = logging.getLogger("inventory_api_main")


def _terminate(signum, frame) -> None:
    logger.info("received signal %d, shutting down", signum)
    raise SystemExit(0)


def main() -> int:
    app = create_app()
    configure_logging(app.config["LOG_LEVEL"])
    store = app.extensions["ledger"]

    logger.info("starting inventory API")
    try:
        prepare_store(store, app.config)
    except InventoryError as err:
        logger.critical("cannot reach the store at %s: %s", store.db_path, err.details or err)
        store.close()
        return 1

    signal.signal(signal.SIGTERM, _terminate)
    try:
        app.run(host=app.config["HOST"], port=int(app.config["PORT"]), threaded=True)
    finally:
        logger.info("closing connection pool")
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
