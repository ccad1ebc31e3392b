"""Startup: wait for the store with bounded retries, then create the schema．"""
from __future__ import annotations

import logging
from typing import Any, Mapping

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .errors import ServiceUnavailable
from .ledger import LedgerStore

logger = logging.getLogger(__name__)


def wait_for_store(
    store: LedgerStore, attempts: int = 10, min_wait: float = 1, max_wait: float = 5
) -> None:
    """Ping the store until it answers. Raises ServiceUnavailable after ``attempts``．"""
    retrying = Retrying(
        retry=retry_if_exception_type(ServiceUnavailable),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    retrying(store.ping)
    logger.info("store at %s is reachable", store.db_path)


def prepare_store(store: LedgerStore, config: Mapping[str, Any]) -> None:
    wait_for_store(
        store,
        attempts=int(config["CONNECT_RETRIES"]),
        min_wait=float(config["RETRY_MIN_WAIT"]),
        max_wait=float(config["RETRY_MAX_WAIT"]),
    )
    store.init_schema()
