import pytest

import inventory_api_main
from inventory_api.bootstrap import prepare_store, wait_for_store
from inventory_api.errors import ServiceUnavailable
from inventory_api.ledger import LedgerStore


def test_wait_for_store_retries_until_reachable(store, monkeypatch):
    calls = []
    real_ping = store.ping

    def flaky_ping():
        calls.append(1)
        if len(calls) < 3:
            raise ServiceUnavailable()
        real_ping()

    monkeypatch.setattr(store, "ping", flaky_ping)
    wait_for_store(store, attempts=5, min_wait=0, max_wait=0)
    assert len(calls) == 3


def test_wait_for_store_gives_up_after_bounded_attempts(tmp_path):
    store = LedgerStore(tmp_path / "missing" / "inventory.db")
    with pytest.raises(ServiceUnavailable):
        wait_for_store(store, attempts=2, min_wait=0, max_wait=0)
    store.close()


def test_prepare_store_creates_schema(tmp_path):
    store = LedgerStore(tmp_path / "fresh.db")
    prepare_store(
        store,
        {"CONNECT_RETRIES": 1, "RETRY_MIN_WAIT": 0, "RETRY_MAX_WAIT": 0},
    )
    names = {row["name"] for row in store.query_all("SELECT name FROM sqlite_master")}
    assert {"products", "transactions", "users", "roles"} <= names
    store.close()


def test_main_exits_when_store_is_unreachable(tmp_path, monkeypatch):
    monkeypatch.setenv("INVENTORY_DB_PATH", str(tmp_path / "missing" / "inventory.db"))
    monkeypatch.setenv("INVENTORY_CONNECT_RETRIES", "2")
    monkeypatch.setenv("INVENTORY_RETRY_MIN_WAIT", "0")
    monkeypatch.setenv("INVENTORY_RETRY_MAX_WAIT", "0")

    assert inventory_api_main.main() == 1
