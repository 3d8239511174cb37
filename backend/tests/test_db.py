from contextlib import contextmanager

import pytest

import backend.app.db as db_module
from backend.app.db import Database
from backend.app.errors import ValidationError


class _DummyConn:
    def __init__(self):
        self.rolled_back = False

    @contextmanager
    def transaction(self):
        try:
            yield
        except Exception:
            self.rolled_back = True
            raise

    @contextmanager
    def cursor(self):
        yield object()


class _DummyPool:
    def __init__(self):
        self.conn = _DummyConn()

    @contextmanager
    def connection(self):
        yield self.conn


@pytest.fixture
def db_and_logs(monkeypatch):
    logged = []
    monkeypatch.setattr(db_module, "json_log", lambda level, event, **fields: logged.append((level, event, fields)))
    db = Database("postgresql://unused/db")
    db.pool = _DummyPool()
    return db, logged


def test_business_rule_rollback_is_a_warning(db_and_logs):
    db, logged = db_and_logs
    with pytest.raises(ValidationError):
        with db.transaction():
            raise ValidationError("no movements generated")

    assert db.pool.conn.rolled_back
    assert logged == [
        ("warning", "db.transaction.rollback", {"error": "no movements generated", "error_type": "ValidationError"})
    ]


def test_unexpected_rollback_is_an_error(db_and_logs):
    db, logged = db_and_logs
    with pytest.raises(RuntimeError):
        with db.transaction():
            raise RuntimeError("connection lost")

    assert [(level, event) for level, event, _ in logged] == [("error", "db.transaction.rollback")]


def test_clean_exit_logs_nothing(db_and_logs):
    db, logged = db_and_logs
    assert db.run_in_transaction(lambda cur: "done") == "done"
    assert logged == []
