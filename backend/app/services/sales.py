from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import CollaboratorError, ValidationError
from ..ledger import outbound, record_movement
from ..transaction_log import TransactionType, dump_payload, log_transaction
from ..validation import CurrencyCode, NonNegativeDecimal, OptionalText, PositiveDecimal, RequiredText


class SalesOrderLineIn(BaseModel):
    product_id: str
    quantity: PositiveDecimal
    price: PositiveDecimal
    discount: NonNegativeDecimal = Decimal("0")


class SalesOrderIn(BaseModel):
    client_id: str
    order_date: date
    currency: CurrencyCode
    salesperson_id: str
    payment_terms: RequiredText
    lines: List[SalesOrderLineIn] = Field(min_length=1)


class DeliveryLineIn(BaseModel):
    product_id: str
    quantity: PositiveDecimal
    unit_cost: Optional[NonNegativeDecimal] = None


class DeliveryIn(BaseModel):
    sales_order_id: Optional[str] = None
    warehouse_id: str
    delivery_date: date
    notes: OptionalText = None
    lines: List[DeliveryLineIn] = Field(min_length=1)


def list_orders(db, status: Optional[str] = None) -> list:
    sql = """
        SELECT pedido_id AS id, cliente_id, fecha, estado, total, moneda
        FROM pedidos
    """
    params: list = []
    if status:
        sql += " WHERE estado = %s"
        params.append(status.strip().upper())
    sql += " ORDER BY fecha DESC LIMIT 100"
    return db.fetch_all(sql, params)


def create_order(db, data: SalesOrderIn, actor_id: Optional[str] = None) -> dict:
    # No deduplication key: the same payload twice is two orders.
    payload = {
        "clienteId": data.client_id,
        "fecha": data.order_date,
        "moneda": data.currency,
        "vendedorId": data.salesperson_id,
        "condicionesPago": data.payment_terms,
        "lineas": [
            {"productoId": ln.product_id, "cantidad": ln.quantity, "precio": ln.price, "descuentos": ln.discount}
            for ln in data.lines
        ],
    }
    with db.transaction() as cur:
        cur.execute("SELECT crear_pedido(%s::jsonb) AS pedido_id", (dump_payload(payload),))
        row = cur.fetchone()
        if not row or not row.get("pedido_id"):
            raise CollaboratorError("could not register sales order")
        order_id = str(row["pedido_id"])
        log_id = log_transaction(
            cur,
            TransactionType.SALES_ORDER,
            order_id,
            "Sales order created",
            {"sales_order_id": order_id, **payload},
            actor_id,
        )
    return {"id": order_id, "transaction_log_id": log_id}


def create_delivery(db, data: DeliveryIn, actor_id: Optional[str] = None) -> dict:
    """
    Ship goods out of a warehouse, one outbound movement per line.

    The log entry references the sales order when there is one; otherwise it
    references the first movement, so the reference is never null.
    """
    with db.transaction() as cur:
        total = Decimal("0")
        lines_snapshot = []
        reason = f"Delivery for order {data.sales_order_id}" if data.sales_order_id else "Delivery"
        for ln in data.lines:
            mv = record_movement(
                cur,
                ln.product_id,
                data.warehouse_id,
                outbound(ln.quantity),
                reason,
                ln.unit_cost,
                actor_id,
            )
            line_total = ln.quantity * (ln.unit_cost or Decimal("0"))
            total += line_total
            lines_snapshot.append(
                {
                    "product_id": ln.product_id,
                    "quantity": ln.quantity,
                    "unit_cost": ln.unit_cost,
                    "line_total": line_total,
                    "movement_id": mv.id,
                    "running_quantity_balance": mv.running_quantity_balance,
                }
            )

        movement_ids = [ln["movement_id"] for ln in lines_snapshot]
        if not movement_ids:
            raise ValidationError("no movements generated")
        reference_id = data.sales_order_id or movement_ids[0]
        log_id = log_transaction(
            cur,
            TransactionType.DELIVERY,
            reference_id,
            reason,
            {
                "sales_order_id": data.sales_order_id,
                "warehouse_id": data.warehouse_id,
                "date": data.delivery_date,
                "notes": data.notes,
                "total": total,
                "lines": lines_snapshot,
                "movement_ids": movement_ids,
            },
            actor_id,
        )

    return {
        "reference_id": reference_id,
        "movement_ids": movement_ids,
        "total": total,
        "transaction_log_id": log_id,
    }
