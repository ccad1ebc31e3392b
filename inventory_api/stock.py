"""Stock mutation engine．

``record_transaction`` is the only code path that changes a product's stock
after creation. It locks the product, validates the delta and appends the
transaction in a single unit of work: both writes persist or neither does．
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .errors import DuplicateKey, InsufficientStock, InvalidInput
from .ledger import LedgerStore
from .models import Product, Transaction, TransactionKind
from .validation import (
    MAX_INTEGER,
    validate_name,
    validate_non_negative_int,
    validate_optional_text,
    validate_positive_int,
    validate_price,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockMovement:
    transaction: Transaction
    stock: int


def record_transaction(
    store: LedgerStore, kind: Any, quantity: Any, product_id: Any, user_id: Any
) -> StockMovement:
    kind = TransactionKind.parse(kind)
    quantity = validate_positive_int(quantity, "cantidad")
    product_id = validate_positive_int(product_id, "producto_id")
    user_id = validate_positive_int(user_id, "usuario_id")

    with store.unit() as unit:
        product = unit.lock_product_for_update(product_id)
        unit.require_user(user_id)

        if kind is TransactionKind.INBOUND:
            new_quantity = product.quantity + quantity
        else:
            new_quantity = product.quantity - quantity
        if new_quantity > MAX_INTEGER:
            raise InvalidInput("cantidad excede el stock máximo permitido")
        if new_quantity < 0:
            logger.warning(
                "rejected %s of %d for product %d: only %d available",
                kind.value, quantity, product_id, product.quantity,
            )
            raise InsufficientStock(product.quantity)

        unit.write_product_quantity(product_id, new_quantity)
        transaction = unit.append_transaction(kind, quantity, product_id, user_id)

    logger.info(
        "transaction %d: %s %d of product %d, stock now %d",
        transaction.id, kind.value, quantity, product_id, new_quantity,
    )
    return StockMovement(transaction, new_quantity)


def create_product(
    store: LedgerStore, name: Any, description: Any, price: Any, quantity: Any = None
) -> Product:
    name = validate_name(name)
    description = validate_optional_text(description, "descripcion")
    price = validate_price(price)
    quantity = validate_non_negative_int(quantity, "cantidad", default=0)

    try:
        with store.unit() as unit:
            product = unit.insert_product(name, description, price, quantity)
    except DuplicateKey as err:
        raise DuplicateKey("Producto ya existe", details=err.details) from err
    logger.info("product %d (%s) created with stock %d", product.id, name, quantity)
    return product
