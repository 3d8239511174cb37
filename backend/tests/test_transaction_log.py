import json
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from backend.app.transaction_log import TransactionType, dump_payload, list_transactions, log_transaction


def test_payload_keeps_decimals_exact():
    out = json.loads(
        dump_payload(
            {
                "total": Decimal("282750.10"),
                "date": date(2024, 5, 1),
                "at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
                "id": UUID("12345678-1234-5678-1234-567812345678"),
                "type": TransactionType.INVOICE,
            }
        )
    )
    assert out == {
        "total": "282750.10",
        "date": "2024-05-01",
        "at": "2024-05-01T12:00:00+00:00",
        "id": "12345678-1234-5678-1234-567812345678",
        "type": "INVOICE",
    }


def test_payload_rejects_unknown_types():
    with pytest.raises(TypeError):
        dump_payload({"x": object()})


def test_log_transaction_inserts_one_row(fake_db):
    with fake_db.transaction() as cur:
        log_id = log_transaction(cur, TransactionType.DELIVERY, "ped-1", "Delivery", {"total": Decimal("1.5")}, "u-1")

    assert log_id == "log-1"
    _, params = fake_db.statements("INSERT INTO transacciones_log")[0]
    assert params == ("DELIVERY", "ped-1", "Delivery", '{"total": "1.5"}', "u-1")


@pytest.mark.parametrize("reference", [None, "", "   "])
def test_log_transaction_requires_reference(fake_db, reference):
    with pytest.raises(ValueError):
        with fake_db.transaction() as cur:
            log_transaction(cur, TransactionType.DELIVERY, reference, "Delivery", {})
    assert fake_db.executed == []


def test_list_transactions_filters(fake_db):
    list_transactions(fake_db, "INVOICE", "fac-1", page=1, page_size=10)
    sql, params = fake_db.executed[0]
    assert "tipo = %s" in sql and "referencia_id = %s" in sql
    assert params == ("INVOICE", "fac-1", 10, 0)
