"""Row types for the ledger and their JSON shapes．

Field names on the wire keep the Spanish vocabulary the API has always
exposed (nombre, cantidad, tipo ...); Python attributes are English．
"""
from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from .errors import InvalidInput


class TransactionKind(str, Enum):
    INBOUND = "entrada"
    OUTBOUND = "salida"

    @classmethod
    def parse(cls, value: Any) -> "TransactionKind":
        aliases = {"inbound": cls.INBOUND, "outbound": cls.OUTBOUND}
        if isinstance(value, str):
            key = value.strip().lower()
            if key in aliases:
                return aliases[key]
            try:
                return cls(key)
            except ValueError:
                pass
        raise InvalidInput("tipo debe ser 'entrada' o 'salida'")


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str | None
    price: float
    quantity: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Product":
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            price=row["price"],
            quantity=row["quantity"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "nombre": self.name,
            "descripcion": self.description,
            "precio": self.price,
            "cantidad": self.quantity,
        }


@dataclass(frozen=True)
class Transaction:
    id: int
    kind: TransactionKind
    quantity: int
    product_id: int
    user_id: int
    created_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Transaction":
        return cls(
            id=row["id"],
            kind=TransactionKind(row["kind"]),
            quantity=row["quantity"],
            product_id=row["product_id"],
            user_id=row["user_id"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tipo": self.kind.value,
            "cantidad": self.quantity,
            "producto_id": self.product_id,
            "usuario_id": self.user_id,
            "fecha_transaccion": self.created_at,
        }


@dataclass(frozen=True)
class User:
    """A registered account. The stored credential never leaves the store．"""

    id: int
    name: str
    email: str
    role_id: int

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "User":
        return cls(id=row["id"], name=row["name"], email=row["email"], role_id=row["role_id"])

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "nombre": self.name, "email": self.email, "role_id": self.role_id}
