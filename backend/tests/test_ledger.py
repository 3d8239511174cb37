from decimal import Decimal

import pytest

from backend.app.errors import CollaboratorError, ValidationError
from backend.app.ledger import inbound, outbound, record_movement


def test_outbound_and_inbound_signs():
    assert outbound("50") == Decimal("-50")
    assert outbound(-50) == Decimal("-50")
    assert inbound(Decimal("-3.5")) == Decimal("3.5")


def test_outbound_movement_updates_running_balance(fake_db):
    fake_db.stock[("SOL-MOD-500W", "ALM-CEN")] = Decimal("125.5")
    with fake_db.transaction() as cur:
        mv = record_movement(cur, "SOL-MOD-500W", "ALM-CEN", outbound(50), "Delivery", None, "u-1")

    assert mv.quantity_delta == Decimal("-50")
    assert mv.running_quantity_balance == Decimal("75.5")
    assert fake_db.stock[("SOL-MOD-500W", "ALM-CEN")] == Decimal("75.5")
    sql, params = fake_db.statements("registrar_movimiento_inventario")[0]
    assert params == ("SOL-MOD-500W", "ALM-CEN", Decimal("-50"), "Delivery", None, "u-1")


@pytest.mark.parametrize("qty", [0, "0", Decimal("0"), "NaN", float("inf"), True, "abc"])
def test_invalid_quantities_fail_before_any_sql(fake_db, qty):
    with pytest.raises(ValidationError):
        with fake_db.transaction() as cur:
            record_movement(cur, "p", "w", qty, "reason")
    assert fake_db.executed == []


def test_blank_reason_and_negative_cost_are_rejected(fake_db):
    with pytest.raises(ValidationError):
        record_movement(None, "p", "w", 1, "   ")
    with pytest.raises(ValidationError):
        record_movement(None, "p", "w", 1, "ok", unit_cost=-1)
    assert fake_db.executed == []


def test_empty_result_is_a_collaborator_error(fake_db):
    fake_db.on("registrar_movimiento_inventario", [])
    with pytest.raises(CollaboratorError):
        with fake_db.transaction() as cur:
            record_movement(cur, "p", "w", 1, "receipt")
    assert fake_db.rollbacks == 1
