"""Error taxonomy shared by the store, the engines and the HTTP layer．

Each error knows the HTTP status it maps to so route handlers never have to
inspect storage exceptions themselves．
"""
from __future__ import annotations

from typing import Any


class InventoryError(Exception):
    status_code = 500
    message = "Error interno"

    def __init__(self, message: str | None = None, details: Any = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message
        self.details = details

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message}
        if include_details and self.details is not None:
            body["details"] = str(self.details)
        return body


class InvalidInput(InventoryError):
    status_code = 400
    message = "Datos de entrada inválidos"


class NotFound(InventoryError):
    status_code = 404
    message = "Recurso no encontrado"


class InsufficientStock(InventoryError):
    status_code = 400

    def __init__(self, available: int) -> None:
        super().__init__(f"Stock insuficiente. Disponible: {available}")
        self.available = available

    def to_dict(self, include_details: bool = False) -> dict[str, Any]:
        body = super().to_dict(include_details)
        body["disponible"] = self.available
        return body


class DuplicateKey(InventoryError):
    status_code = 409
    message = "El registro ya existe"


class TransactionFailed(InventoryError):
    status_code = 500
    message = "Error en la transacción"


class ServiceUnavailable(InventoryError):
    status_code = 503
    message = "Servicio no disponible. Intente nuevamente."
