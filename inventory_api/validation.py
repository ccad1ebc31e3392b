"""Input validation for request payloads．

Every validator returns the cleaned value or raises InvalidInput, so nothing
malformed ever reaches the store．
"""
from __future__ import annotations

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from .errors import InvalidInput

# largest value a SQLite INTEGER column can hold
MAX_INTEGER = 2**63 - 1
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_NAME_LENGTH = 120


def require_payload(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidInput("Se esperaba un objeto JSON")
    return data


def validate_name(value: Any, field: str = "nombre") -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput(f"{field} es obligatorio")
    value = value.strip()
    if len(value) > MAX_NAME_LENGTH:
        raise InvalidInput(f"{field} no puede superar {MAX_NAME_LENGTH} caracteres")
    return value


def validate_optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{field} debe ser texto")
    return value


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid quantity
    return isinstance(value, int) and not isinstance(value, bool)


def validate_positive_int(value: Any, field: str) -> int:
    if not _is_int(value) or value <= 0:
        raise InvalidInput(f"{field} debe ser un entero positivo")
    if value > MAX_INTEGER:
        raise InvalidInput(f"{field} es demasiado grande")
    return value


def validate_non_negative_int(value: Any, field: str, default: int | None = None) -> int:
    if value is None and default is not None:
        return default
    if isinstance(value, str) and value.strip().isdecimal():
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidInput(f"{field} es demasiado grande")
    if not _is_int(value) or value < 0:
        raise InvalidInput(f"{field} debe ser un entero mayor o igual a 0")
    if value > MAX_INTEGER:
        raise InvalidInput(f"{field} es demasiado grande")
    return value


def validate_price(value: Any) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidInput("precio es obligatorio")
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput("precio tiene un formato inválido")
    if not price.is_finite() or price < 0:
        raise InvalidInput("precio no puede ser negativo")
    if not math.isfinite(float(price)):
        raise InvalidInput("precio es demasiado grande")
    return price


def validate_email(value: Any) -> str:
    if not isinstance(value, str) or not EMAIL_PATTERN.fullmatch(value.strip()):
        raise InvalidInput("email inválido")
    return value.strip().lower()


def validate_password(value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidInput("password es obligatorio")
    return value
