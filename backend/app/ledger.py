from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from .errors import CollaboratorError, ValidationError

Number = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class StockMovement:
    id: str
    product_id: str
    warehouse_id: str
    quantity_delta: Decimal
    unit_cost: Optional[Decimal]
    reason: str
    created_at: Optional[datetime]
    running_quantity_balance: Decimal
    running_cost_balance: Decimal

    def snapshot(self) -> dict:
        return {
            "movement_id": self.id,
            "product_id": self.product_id,
            "warehouse_id": self.warehouse_id,
            "quantity": self.quantity_delta,
            "unit_cost": self.unit_cost,
            "running_quantity_balance": self.running_quantity_balance,
        }


def _to_decimal(value: Number, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number") from None
    if not d.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    return d


def outbound(qty: Number) -> Decimal:
    return -abs(_to_decimal(qty, "quantity"))


def inbound(qty: Number) -> Decimal:
    return abs(_to_decimal(qty, "quantity"))


def record_movement(
    cur,
    product_id: str,
    warehouse_id: str,
    quantity_delta: Number,
    reason: str,
    unit_cost: Optional[Number] = None,
    actor_id: Optional[str] = None,
) -> StockMovement:
    """
    Record one signed stock movement and return it with the running balances
    the database computed. `unit_cost` on the result is the cost actually
    applied: the given one, or the warehouse average when none was given.

    Positive deltas are inbound, negative outbound. Zero and NaN are refused
    before anything is written. When this is one step of a larger document
    flow, pass the cursor of the surrounding transaction so a later failure
    rolls this movement back too.
    """
    delta = _to_decimal(quantity_delta, "quantity_delta")
    if delta == 0:
        raise ValidationError("quantity_delta must be non-zero")
    reason_clean = (reason or "").strip()
    if not reason_clean:
        raise ValidationError("reason is required")
    cost = _to_decimal(unit_cost, "unit_cost") if unit_cost is not None else None
    if cost is not None and cost < 0:
        raise ValidationError("unit_cost must be >= 0")

    cur.execute(
        """
        SELECT movimiento_id, fecha, costo_unitario, saldo_cantidad, saldo_costo
        FROM registrar_movimiento_inventario(%s, %s, %s, %s, %s, %s)
        """,
        (product_id, warehouse_id, delta, reason_clean, cost, actor_id),
    )
    row = cur.fetchone()
    if not row or not row.get("movimiento_id"):
        raise CollaboratorError("could not record inventory movement")

    return StockMovement(
        id=str(row["movimiento_id"]),
        product_id=str(product_id),
        warehouse_id=str(warehouse_id),
        quantity_delta=delta,
        unit_cost=Decimal(str(row["costo_unitario"])) if row.get("costo_unitario") is not None else cost,
        reason=reason_clean,
        created_at=row.get("fecha"),
        running_quantity_balance=Decimal(str(row.get("saldo_cantidad") or 0)),
        running_cost_balance=Decimal(str(row.get("saldo_costo") or 0)),
    )
