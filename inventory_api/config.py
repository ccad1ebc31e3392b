"""Configuration defaults．

``create_app`` loads these into ``app.config`` and then overrides them with
any ``INVENTORY_*`` environment variable (``INVENTORY_POOL_SIZE=40`` sets
``POOL_SIZE``)．
"""
from __future__ import annotations

import logging

DEFAULTS = {
    "DB_PATH": "inventory.db",
    "POOL_SIZE": 20,
    "POOL_TIMEOUT": 5.0,  # seconds to wait for a free connection
    "LOCK_TIMEOUT": 5.0,  # seconds to wait for the write lock
    "CONNECT_RETRIES": 10,
    "RETRY_MIN_WAIT": 1,
    "RETRY_MAX_WAIT": 5,
    "LOW_STOCK_THRESHOLD": 10,
    "DEFAULT_ROLE_ID": 3,  # empleado, the least privileged role
    "APP_ENV": "production",
    "HOST": "0.0.0.0",
    "PORT": 5000,
    "LOG_LEVEL": "INFO",
}

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
