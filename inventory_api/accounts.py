"""User registration and the credential component it delegates to．"""
from __future__ import annotations

import logging
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from .config import DEFAULTS
from .errors import DuplicateKey
from .ledger import LedgerStore
from .models import User
from .validation import validate_email, validate_name, validate_password, validate_positive_int

logger = logging.getLogger(__name__)

DEFAULT_ROLE_ID = DEFAULTS["DEFAULT_ROLE_ID"]


def hash_password(plaintext: str) -> str:
    return generate_password_hash(plaintext)


def verify_password(credential: str, plaintext: str) -> bool:
    return check_password_hash(credential, plaintext)


def register_user(
    store: LedgerStore,
    name: Any,
    email: Any,
    password: Any,
    role_id: Any = None,
    default_role_id: int = DEFAULT_ROLE_ID,
) -> User:
    name = validate_name(name)
    email = validate_email(email)
    password = validate_password(password)
    role_id = default_role_id if role_id is None else validate_positive_int(role_id, "role_id")

    credential = hash_password(password)
    try:
        with store.unit() as unit:
            unit.require_role(role_id)
            user = unit.insert_user(name, email, credential, role_id)
    except DuplicateKey as err:
        raise DuplicateKey("El email ya existe", details=err.details) from err
    logger.info("user %d registered with role %d", user.id, role_id)
    return user
