"""Ledger store: products, users and the append-only transaction log．

The store owns a bounded pool of SQLite connections (SQLAlchemy QueuePool
over the raw sqlite3 driver). Writes happen inside a UnitOfWork obtained
from ``LedgerStore.unit()``; reads go through the ``query_*`` helpers and
never take the write lock．
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import closing, contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Tuple

from sqlalchemy import exc as sa_exc
from sqlalchemy.pool import QueuePool

from .errors import (
    DuplicateKey,
    InventoryError,
    NotFound,
    ServiceUnavailable,
    TransactionFailed,
)
from .models import Product, Transaction, TransactionKind, User

logger = logging.getLogger(__name__)

# Fixed width so that string comparison orders timestamps chronologically.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"

SCHEMA = """
CREATE TABLE IF NOT EXISTS roles (
    id   INTEGER PRIMARY KEY,
    name TEXT NOT NULL UNIQUE
);
INSERT OR IGNORE INTO roles (id, name) VALUES
    (1, 'admin'), (2, 'supervisor'), (3, 'empleado');

CREATE TABLE IF NOT EXISTS users (
    id       INTEGER PRIMARY KEY AUTOINCREMENT,
    name     TEXT NOT NULL,
    email    TEXT NOT NULL UNIQUE,
    password TEXT NOT NULL,
    role_id  INTEGER NOT NULL DEFAULT 3 REFERENCES roles (id)
);

CREATE TABLE IF NOT EXISTS products (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL UNIQUE,
    description TEXT,
    price       REAL NOT NULL CHECK (price >= 0),
    quantity    INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0)
);

CREATE TABLE IF NOT EXISTS transactions (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    kind       TEXT NOT NULL CHECK (kind IN ('entrada', 'salida')),
    quantity   INTEGER NOT NULL CHECK (quantity > 0),
    product_id INTEGER NOT NULL REFERENCES products (id),
    user_id    INTEGER NOT NULL REFERENCES users (id),
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_transactions_created_at
    ON transactions (created_at);

CREATE TRIGGER IF NOT EXISTS transactions_no_update
BEFORE UPDATE ON transactions
BEGIN
    SELECT RAISE(ABORT, 'transactions are append-only');
END;
CREATE TRIGGER IF NOT EXISTS transactions_no_delete
BEFORE DELETE ON transactions
BEGIN
    SELECT RAISE(ABORT, 'transactions are append-only');
END;
"""


def translate_storage_error(err: sqlite3.Error) -> InventoryError:
    if isinstance(err, sqlite3.IntegrityError) and "UNIQUE" in str(err):
        return DuplicateKey(details=err)
    return TransactionFailed(details=err)


###############################################################################
# Unit of work                                                                #
###############################################################################

class UnitOfWork:
    """A write transaction on one pooled connection．

    ``begin`` issues ``BEGIN IMMEDIATE``, which takes the SQLite write lock up
    front. Every read made through ``lock_product_for_update`` therefore sees
    a quantity no other unit can change until this one commits or aborts．

    The sqlite3 backend has no row locks: the write lock covers the whole
    database, so units on different products serialize instead of running
    in parallel．
    """

    def __init__(self, conn: Any, clock: Callable[[], datetime]) -> None:
        self._conn = conn
        self._clock = clock
        self.active = False

    def _execute(self, sql: str, params: Tuple | Dict[str, Any] = ()) -> sqlite3.Cursor:
        cur = self._conn.cursor()
        cur.execute(sql, params)
        return cur

    def begin(self) -> None:
        self._execute("BEGIN IMMEDIATE")
        self.active = True

    def commit(self) -> None:
        self._execute("COMMIT")
        self.active = False

    def abort(self) -> None:
        if not self.active:
            return
        self.active = False
        try:
            self._execute("ROLLBACK")
        except sqlite3.Error:
            # the pool rolls back again when the connection is returned
            logger.exception("rollback failed")

    def lock_product_for_update(self, product_id: int) -> Product:
        row = self._execute("SELECT * FROM products WHERE id = ?", (product_id,)).fetchone()
        if row is None:
            raise NotFound("Producto no encontrado")
        return Product.from_row(row)

    def write_product_quantity(self, product_id: int, quantity: int) -> None:
        self._execute("UPDATE products SET quantity = ? WHERE id = ?", (quantity, product_id))

    def append_transaction(
        self, kind: TransactionKind, quantity: int, product_id: int, user_id: int
    ) -> Transaction:
        created_at = self._clock().strftime(TIMESTAMP_FORMAT)
        cur = self._execute(
            """INSERT INTO transactions (kind, quantity, product_id, user_id, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (kind.value, quantity, product_id, user_id, created_at),
        )
        return Transaction(
            id=cur.lastrowid,
            kind=kind,
            quantity=quantity,
            product_id=product_id,
            user_id=user_id,
            created_at=created_at,
        )

    def insert_product(
        self, name: str, description: str | None, price: Decimal, quantity: int
    ) -> Product:
        cur = self._execute(
            "INSERT INTO products (name, description, price, quantity) VALUES (?, ?, ?, ?)",
            (name, description, float(price), quantity),
        )
        return Product(cur.lastrowid, name, description, float(price), quantity)

    def require_user(self, user_id: int) -> None:
        if self._execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone() is None:
            raise NotFound("Usuario no encontrado")

    def require_role(self, role_id: int) -> None:
        if self._execute("SELECT 1 FROM roles WHERE id = ?", (role_id,)).fetchone() is None:
            raise NotFound("Rol no encontrado")

    def insert_user(self, name: str, email: str, credential: str, role_id: int) -> User:
        cur = self._execute(
            "INSERT INTO users (name, email, password, role_id) VALUES (?, ?, ?, ?)",
            (name, email, credential, role_id),
        )
        return User(cur.lastrowid, name, email, role_id)


###############################################################################
# Store                                                                       #
###############################################################################

class LedgerStore:
    def __init__(
        self,
        db_path: str | Path,
        *,
        pool_size: int = 20,
        pool_timeout: float = 5.0,
        lock_timeout: float = 5.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db_path = str(db_path)
        self.pool_size = pool_size
        self.pool_timeout = pool_timeout
        self.lock_timeout = lock_timeout
        self.clock = clock
        self._pool_lock = threading.Lock()
        self._pool = self._create_pool()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "LedgerStore":
        return cls(
            config["DB_PATH"],
            pool_size=int(config["POOL_SIZE"]),
            pool_timeout=float(config["POOL_TIMEOUT"]),
            lock_timeout=float(config["LOCK_TIMEOUT"]),
        )

    # -- connection provisioning ------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.lock_timeout,
            isolation_level=None,  # transactions are managed explicitly
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _create_pool(self) -> QueuePool:
        logger.info(
            "creating connection pool for %s (size=%d, timeout=%.1fs)",
            self.db_path, self.pool_size, self.pool_timeout,
        )
        return QueuePool(
            self._connect,
            pool_size=self.pool_size,
            max_overflow=0,
            timeout=self.pool_timeout,
        )

    def acquire(self) -> Any:
        """Check out a connection; ``close()`` on it returns it to the pool．"""
        try:
            return self._pool.connect()
        except sa_exc.TimeoutError as err:
            raise ServiceUnavailable(details=err) from err
        except sqlite3.Error as err:
            raise ServiceUnavailable(details=err) from err

    def reprovision(self) -> None:
        with self._pool_lock:
            old = self._pool
            self._pool = old.recreate()
        old.dispose()
        logger.warning("connection pool for %s reprovisioned", self.db_path)

    def close(self) -> None:
        self._pool.dispose()

    def ping(self) -> None:
        conn = self.acquire()
        try:
            conn.cursor().execute("SELECT 1")
        except sqlite3.Error as err:
            raise ServiceUnavailable(details=err) from err
        finally:
            conn.close()

    def init_schema(self) -> None:
        conn = self.acquire()
        try:
            if self.db_path != ":memory:":
                conn.cursor().execute("PRAGMA journal_mode = WAL")
            conn.executescript(SCHEMA)
        except sqlite3.Error as err:
            raise TransactionFailed(details=err) from err
        finally:
            conn.close()

    # -- writes -----------------------------------------------------------

    @contextmanager
    def unit(self) -> Iterator[UnitOfWork]:
        """Open a unit of work: commit on normal exit, abort on any other．"""
        conn = self.acquire()
        work = UnitOfWork(conn, self.clock)
        try:
            work.begin()
            yield work
            work.commit()
        except BaseException as err:
            work.abort()
            logger.debug("unit of work aborted: %r", err)
            if isinstance(err, sqlite3.Error):
                raise translate_storage_error(err) from err
            raise
        finally:
            conn.close()

    # -- reads ------------------------------------------------------------

    def query_one(self, sql: str, params: Tuple | Dict[str, Any] = ()) -> Any:
        conn = self.acquire()
        try:
            with closing(conn.cursor()) as cur:
                cur.execute(sql, params)
                return cur.fetchone()
        except sqlite3.Error as err:
            raise TransactionFailed(details=err) from err
        finally:
            conn.close()

    def query_all(self, sql: str, params: Tuple | Dict[str, Any] = ()) -> List[Any]:
        conn = self.acquire()
        try:
            with closing(conn.cursor()) as cur:
                cur.execute(sql, params)
                return cur.fetchall()
        except sqlite3.Error as err:
            raise TransactionFailed(details=err) from err
        finally:
            conn.close()

    def list_products(self) -> List[Product]:
        return [Product.from_row(r) for r in self.query_all("SELECT * FROM products ORDER BY id")]

    def products_below(self, threshold: int) -> List[Product]:
        rows = self.query_all(
            "SELECT * FROM products WHERE quantity < ? ORDER BY quantity ASC, id ASC",
            (threshold,),
        )
        return [Product.from_row(r) for r in rows]

    def list_transactions(self, product_id: int | None = None) -> List[Transaction]:
        if product_id is None:
            rows = self.query_all("SELECT * FROM transactions ORDER BY id")
        else:
            rows = self.query_all(
                "SELECT * FROM transactions WHERE product_id = ? ORDER BY id", (product_id,)
            )
        return [Transaction.from_row(r) for r in rows]

    def window_rows(self, start: datetime, end: datetime) -> List[Tuple[Any, ...]]:
        """Transactions committed in ``[start, end)`` joined with product prices．"""
        rows = self.query_all(
            """SELECT p.id, p.name, t.kind, t.quantity, p.price
                 FROM transactions t
                 JOIN products p ON t.product_id = p.id
                WHERE t.created_at >= ? AND t.created_at < ?""",
            (start.strftime(TIMESTAMP_FORMAT), end.strftime(TIMESTAMP_FORMAT)),
        )
        return [tuple(r) for r in rows]
