from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import CollaboratorError, ValidationError
from ..ledger import inbound, outbound, record_movement
from ..transaction_log import TransactionType, log_transaction
from ..validation import NonNegativeDecimal, OptionalText, PositiveDecimal, RequiredText


class AdjustmentIn(BaseModel):
    product_id: str
    warehouse_id: str
    quantity: Decimal
    reason: RequiredText
    unit_cost: Optional[NonNegativeDecimal] = None


class TransferLineIn(BaseModel):
    product_id: str
    quantity: PositiveDecimal
    unit_cost: Optional[NonNegativeDecimal] = None


class TransferIn(BaseModel):
    origin_warehouse_id: str
    destination_warehouse_id: str
    reason: RequiredText
    notes: OptionalText = None
    lines: List[TransferLineIn] = Field(min_length=1)


def get_kardex(db, product_id: str, warehouse_id: Optional[str] = None) -> list:
    sql = """
        SELECT movimiento_id AS id, fecha, almacen_id, tipo, cantidad, costo_unitario,
               saldo_cantidad, saldo_costo, motivo
        FROM kardex
        WHERE producto_id = %s
    """
    params: list = [product_id]
    if warehouse_id:
        sql += " AND almacen_id = %s"
        params.append(warehouse_id)
    sql += " ORDER BY fecha ASC, movimiento_id ASC"
    return db.fetch_all(sql, params)


def get_valuation(db) -> list:
    return db.fetch_all(
        """
        SELECT producto_id, SUM(cantidad * costo_unitario) AS valor_total, SUM(cantidad) AS existencias
        FROM stock_valuado
        GROUP BY producto_id
        ORDER BY producto_id
        """
    )


def create_adjustment(db, data: AdjustmentIn, actor_id: Optional[str] = None) -> dict:
    quantity = Decimal(str(data.quantity))
    if not quantity.is_finite() or quantity == 0:
        raise ValidationError("quantity must be non-zero")

    with db.transaction() as cur:
        cur.execute(
            "SELECT registrar_ajuste_inventario(%s, %s, %s, %s, %s, %s) AS ajuste_id",
            (data.product_id, data.warehouse_id, quantity, data.reason, data.unit_cost, actor_id),
        )
        row = cur.fetchone()
        if not row or not row.get("ajuste_id"):
            raise CollaboratorError("could not register inventory adjustment")
        adjustment_id = str(row["ajuste_id"])
        log_id = log_transaction(
            cur,
            TransactionType.INVENTORY_ADJUSTMENT,
            adjustment_id,
            f"Inventory adjustment: {data.reason}",
            {
                "adjustment_id": adjustment_id,
                "product_id": data.product_id,
                "warehouse_id": data.warehouse_id,
                "quantity": quantity,
                "unit_cost": data.unit_cost,
                "reason": data.reason,
            },
            actor_id,
        )
    return {"id": adjustment_id, "transaction_log_id": log_id}


def create_transfer(db, data: TransferIn, actor_id: Optional[str] = None) -> dict:
    """
    Move stock between two warehouses.

    Every line produces an outbound movement at the origin and a matching
    inbound movement at the destination; all lines and the log entry share a
    single transaction, so a failure on any line leaves both warehouses as
    they were.
    """
    if data.origin_warehouse_id == data.destination_warehouse_id:
        raise ValidationError("origin and destination warehouses must differ")

    with db.transaction() as cur:
        lines_snapshot = []
        for ln in data.lines:
            out_mv = record_movement(
                cur,
                ln.product_id,
                data.origin_warehouse_id,
                outbound(ln.quantity),
                data.reason,
                ln.unit_cost,
                actor_id,
            )
            # Value arrives at the cost it left with.
            in_mv = record_movement(
                cur,
                ln.product_id,
                data.destination_warehouse_id,
                inbound(ln.quantity),
                data.reason,
                out_mv.unit_cost,
                actor_id,
            )
            lines_snapshot.append(
                {
                    "product_id": ln.product_id,
                    "quantity": abs(in_mv.quantity_delta),
                    "unit_cost": in_mv.unit_cost,
                    "outbound_movement_id": out_mv.id,
                    "inbound_movement_id": in_mv.id,
                }
            )

        if not lines_snapshot:
            raise ValidationError("no movements generated")

        reference_id = lines_snapshot[0]["outbound_movement_id"]
        log_id = log_transaction(
            cur,
            TransactionType.INVENTORY_TRANSFER,
            reference_id,
            f"Transfer {data.origin_warehouse_id} -> {data.destination_warehouse_id}: {data.reason}",
            {
                "origin_warehouse_id": data.origin_warehouse_id,
                "destination_warehouse_id": data.destination_warehouse_id,
                "reason": data.reason,
                "notes": data.notes,
                "lines": lines_snapshot,
            },
            actor_id,
        )

    return {"reference_id": reference_id, "lines": lines_snapshot, "transaction_log_id": log_id}
