import sqlite3
from concurrent.futures import ThreadPoolExecutor

import pytest

from inventory_api.errors import InsufficientStock, InvalidInput, NotFound, TransactionFailed
from inventory_api.ledger import UnitOfWork
from inventory_api.models import TransactionKind
from inventory_api.stock import create_product, record_transaction

from helpers import stock_of, transaction_count

# --- single mutations ---


def test_outbound_decrements_stock_and_records_row(store, user):
    product = create_product(store, "cable", "cable 2mm", 10, 8)

    movement = record_transaction(store, "salida", 3, product.id, user.id)

    assert movement.stock == 5
    assert movement.transaction.kind is TransactionKind.OUTBOUND
    assert stock_of(store, product.id) == 5
    assert [t.quantity for t in store.list_transactions(product.id)] == [3]


def test_inbound_increments_stock(store, user):
    product = create_product(store, "cinta", None, 1)  # default quantity 0

    movement = record_transaction(store, "inbound", 4, product.id, user.id)

    assert movement.stock == 4
    assert movement.transaction.kind is TransactionKind.INBOUND
    assert stock_of(store, product.id) == 4


def test_outbound_beyond_stock_is_rejected_without_side_effects(store, user):
    product = create_product(store, "foco", None, 3, 2)

    with pytest.raises(InsufficientStock) as excinfo:
        record_transaction(store, "salida", 5, product.id, user.id)

    assert excinfo.value.available == 2
    assert "Disponible: 2" in excinfo.value.message
    assert stock_of(store, product.id) == 2
    assert transaction_count(store) == 0


def test_outbound_of_entire_stock_leaves_zero(store, user):
    product = create_product(store, "pala", None, 30, 2)
    assert record_transaction(store, "salida", 2, product.id, user.id).stock == 0


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "3", True, None])
def test_non_positive_or_non_integer_quantity_is_invalid(store, user, quantity):
    product = create_product(store, "pinza", None, 3, 5)
    with pytest.raises(InvalidInput):
        record_transaction(store, "salida", quantity, product.id, user.id)
    assert stock_of(store, product.id) == 5


def test_unknown_kind_is_invalid(store, user):
    product = create_product(store, "brocha", None, 3, 5)
    with pytest.raises(InvalidInput):
        record_transaction(store, "ajuste", 1, product.id, user.id)


def test_missing_product_is_not_found(store, user):
    with pytest.raises(NotFound):
        record_transaction(store, "entrada", 1, 404, user.id)
    assert transaction_count(store) == 0


def test_missing_user_is_not_found(store):
    product = create_product(store, "taladro", None, 100, 5)
    with pytest.raises(NotFound):
        record_transaction(store, "salida", 1, product.id, 999)
    assert stock_of(store, product.id) == 5


def test_storage_failure_after_lock_rolls_back(store, user, monkeypatch):
    product = create_product(store, "guante", None, 4, 10)

    def broken_append(self, *args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(UnitOfWork, "append_transaction", broken_append)

    with pytest.raises(TransactionFailed):
        record_transaction(store, "salida", 4, product.id, user.id)

    assert stock_of(store, product.id) == 10
    assert transaction_count(store) == 0


# --- concurrency ---


def _outbound(store, product_id, user_id, quantity):
    try:
        return record_transaction(store, "salida", quantity, product_id, user_id)
    except InsufficientStock as err:
        return err


def test_concurrent_outbounds_lose_no_updates(store, user):
    product = create_product(store, "tubo", None, 5, 100)
    quantities = [1, 2, 3, 4, 5, 6, 7, 8, 9, 10]

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda q: _outbound(store, product.id, user.id, q), quantities))

    assert not [r for r in results if isinstance(r, InsufficientStock)]
    assert stock_of(store, product.id) == 100 - sum(quantities)
    assert transaction_count(store, product.id) == len(quantities)


def test_concurrent_outbounds_beyond_stock_only_fitting_ones_succeed(store, user):
    product = create_product(store, "codo", None, 5, 5)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: _outbound(store, product.id, user.id, 1), range(8)))

    succeeded = [r for r in results if not isinstance(r, InsufficientStock)]
    rejected = [r for r in results if isinstance(r, InsufficientStock)]
    assert len(succeeded) == 5
    assert len(rejected) == 3
    assert all(err.available == 0 for err in rejected)
    assert sorted(m.stock for m in succeeded) == [0, 1, 2, 3, 4]
    assert stock_of(store, product.id) == 0
    assert transaction_count(store, product.id) == 5


def test_concurrent_mutations_on_different_products(store, user):
    first = create_product(store, "valvula", None, 5, 50)
    second = create_product(store, "llave", None, 5, 50)

    def move(product_id):
        return record_transaction(store, "salida", 1, product_id, user.id)

    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(move, [first.id, second.id] * 10))

    assert stock_of(store, first.id) == 40
    assert stock_of(store, second.id) == 40


# --- product creation ---


def test_create_product_defaults_quantity_to_zero(store):
    product = create_product(store, "arena", "bolsa 25kg", "12.50")
    assert product.quantity == 0
    assert product.price == 12.5


@pytest.mark.parametrize("price", [-1, "abc", None, "1e400", "NaN"])
def test_create_product_rejects_bad_price(store, price):
    with pytest.raises(InvalidInput):
        create_product(store, "cemento", None, price)


def test_create_product_rejects_negative_quantity(store):
    with pytest.raises(InvalidInput):
        create_product(store, "cemento", None, 10, -5)
