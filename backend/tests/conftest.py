import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

import pytest


# Allow running pytest from either the repo root or from within `backend/`.
# Tests import `backend.*`, which requires the repo root on sys.path.
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


class InsufficientStock(Exception):
    pass


class FakeCursor:
    def __init__(self, db: "FakeDatabase"):
        self._db = db
        self._rows: list = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self._rows = self._db._dispatch(sql, tuple(params or ()))

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)


class FakeDatabase:
    """
    Stand-in for `backend.app.db.Database`.

    Statements are answered by handlers matched on a SQL fragment. Stock
    balances, average costs and the transaction log live in memory and are
    restored when a transaction rolls back, the way Postgres would discard them.
    """

    def __init__(self):
        self.handlers: list = []
        self.executed: list = []
        self.stock: dict = {}
        self.avg_cost: dict = {}
        self.log: list = []
        self.commits = 0
        self.rollbacks = 0
        self._seq = 0
        self.fail_movement_at = None
        self.on("registrar_movimiento_inventario", self._movement)
        self.on("INSERT INTO transacciones_log", self._log_insert)

    def on(self, fragment: str, handler):
        """Answer statements containing `fragment` with rows, or by calling `handler(params)`."""
        self.handlers.insert(0, (fragment, handler))

    def statements(self, fragment: str) -> list:
        return [(sql, params) for sql, params in self.executed if fragment in sql]

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    def _dispatch(self, sql: str, params: tuple) -> list:
        self.executed.append((" ".join(sql.split()), params))
        for fragment, handler in self.handlers:
            if fragment in sql:
                return list(handler(params) if callable(handler) else handler)
        return []

    def _movement(self, params):
        product_id, warehouse_id, delta, _reason, cost, _actor = params
        count = len(self.statements("registrar_movimiento_inventario"))
        if self.fail_movement_at is not None and count == self.fail_movement_at:
            raise InsufficientStock("insufficient stock")
        key = (product_id, warehouse_id)
        delta = Decimal(delta)
        on_hand = self.stock.get(key, Decimal("0"))
        if key in self.stock:
            average = self.avg_cost.get(key, Decimal("0"))
        else:
            average = cost if cost is not None else Decimal("0")
        balance = on_hand + delta
        if balance < 0:
            raise InsufficientStock("insufficient stock")
        if delta > 0:
            applied = cost if cost is not None else average
            if balance > 0:
                average = (on_hand * average + delta * applied) / balance
        else:
            applied = average
        self.stock[key] = balance
        self.avg_cost[key] = average
        return [
            {
                "movimiento_id": self._next_id("mv"),
                "fecha": datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
                "costo_unitario": applied,
                "saldo_cantidad": balance,
                "saldo_costo": balance * average,
            }
        ]

    def _log_insert(self, params):
        log_id = self._next_id("log")
        self.log.append({"id": log_id, "tipo": params[0], "referencia_id": params[1], "payload": params[3]})
        return [{"transaccion_id": log_id}]

    @contextmanager
    def transaction(self):
        stock_before = dict(self.stock)
        avg_before = dict(self.avg_cost)
        log_before = list(self.log)
        try:
            yield FakeCursor(self)
        except Exception:
            self.rollbacks += 1
            self.stock = stock_before
            self.avg_cost = avg_before
            self.log = log_before
            raise
        self.commits += 1

    def run_in_transaction(self, work):
        with self.transaction() as cur:
            return work(cur)

    def fetch_all(self, sql, params=None):
        cur = FakeCursor(self)
        cur.execute(sql, params)
        return cur.fetchall()

    def fetch_one(self, sql, params=None):
        cur = FakeCursor(self)
        cur.execute(sql, params)
        return cur.fetchone()

    def ping(self):
        return None


@pytest.fixture
def fake_db():
    return FakeDatabase()
