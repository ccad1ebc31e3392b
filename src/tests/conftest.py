from datetime import datetime

import pytest

from inventory_api import create_app
from inventory_api.accounts import register_user
from inventory_api.ledger import LedgerStore


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 5, 30, 12, 0, 0))


@pytest.fixture
def store(tmp_path, clock):
    store = LedgerStore(
        tmp_path / "inventory.db",
        pool_size=5,
        pool_timeout=10.0,
        lock_timeout=10.0,
        clock=clock,
    )
    store.init_schema()
    yield store
    store.close()


@pytest.fixture
def user(store):
    return register_user(store, "Ana", "ana@example.com", "secreto")


@pytest.fixture
def app(store):
    return create_app({"TESTING": True, "APP_ENV": "development"}, store=store)


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client
