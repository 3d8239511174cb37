from __future__ import annotations

import secrets
from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import CollaboratorError, NotFoundError, ValidationError
from ..ledger import inbound, record_movement
from ..logs import json_log
from ..transaction_log import TransactionType, dump_payload, log_transaction
from ..validation import (
    CurrencyCode,
    NonNegativeDecimal,
    OptionalText,
    PositiveDecimal,
    PurchaseOrderStatus,
    RequiredText,
)

DEFAULT_QUICK_SUPPLIER_NAME = "Proveedor acciones rápidas"
ORDER_NUMBER_PAD = 5


class PurchaseOrderLineIn(BaseModel):
    product_id: str
    quantity: PositiveDecimal
    price: PositiveDecimal
    taxes: List[Decimal] = Field(default_factory=list)


class PurchaseOrderIn(BaseModel):
    supplier_id: str
    order_date: date
    currency: CurrencyCode
    payment_terms: RequiredText
    requester_id: str
    lines: List[PurchaseOrderLineIn] = Field(min_length=1)


class QuickPurchaseOrderIn(BaseModel):
    supplier_id: Optional[str] = None
    supplier_name: OptionalText = None
    supplier_tax_id: OptionalText = None
    order_date: date
    currency: CurrencyCode
    status: PurchaseOrderStatus = "BORRADOR"
    total: NonNegativeDecimal
    payment_terms: OptionalText = None
    reference: OptionalText = None


class GoodsReceiptLineIn(BaseModel):
    product_id: str
    quantity: PositiveDecimal
    cost: NonNegativeDecimal


class GoodsReceiptIn(BaseModel):
    purchase_order_id: Optional[str] = None
    warehouse_id: str
    receipt_date: date
    notes: OptionalText = None
    lines: List[GoodsReceiptLineIn] = Field(min_length=1)


def list_purchase_orders(db, status: Optional[str] = None) -> list:
    sql = """
        SELECT oc_id AS id, numero, proveedor_id, fecha, estado, moneda, total, impuestos
        FROM ordenes_compra
    """
    params: list = []
    if status:
        sql += " WHERE estado = %s"
        params.append(status.strip().upper())
    sql += " ORDER BY fecha DESC LIMIT 100"
    return db.fetch_all(sql, params)


def create_purchase_order(db, data: PurchaseOrderIn, actor_id: Optional[str] = None) -> dict:
    payload = {
        "proveedorId": data.supplier_id,
        "fecha": data.order_date,
        "moneda": data.currency,
        "condicionesPago": data.payment_terms,
        "solicitanteId": data.requester_id,
        "lineas": [
            {"productoId": ln.product_id, "cantidad": ln.quantity, "precio": ln.price, "impuestos": ln.taxes}
            for ln in data.lines
        ],
    }
    with db.transaction() as cur:
        cur.execute("SELECT crear_orden_compra(%s::jsonb) AS oc_id", (dump_payload(payload),))
        row = cur.fetchone()
        if not row or not row.get("oc_id"):
            raise CollaboratorError("could not register purchase order")
        order_id = str(row["oc_id"])
        log_id = log_transaction(
            cur,
            TransactionType.PURCHASE_ORDER,
            order_id,
            "Purchase order created",
            {"purchase_order_id": order_id, **payload},
            actor_id,
        )
    return {"id": order_id, "transaction_log_id": log_id}


def order_number(issued_on: date, seq_value: int) -> str:
    return f"OC-{issued_on.strftime('%Y%m%d')}-{int(seq_value):0{ORDER_NUMBER_PAD}d}"


def placeholder_tax_id() -> str:
    return f"TEMP-{secrets.token_hex(4)}"


def resolve_supplier(db, data: QuickPurchaseOrderIn) -> dict:
    """
    Find the supplier for a quick order, creating a placeholder when no
    existing supplier matches the name.
    """
    if data.supplier_id:
        row = db.fetch_one(
            "SELECT proveedor_id AS id, nombre FROM proveedores WHERE proveedor_id = %s",
            (data.supplier_id,),
        )
        if not row:
            raise NotFoundError("supplier not found")
        return {"id": str(row["id"]), "name": row["nombre"], "created": False}

    name = data.supplier_name or DEFAULT_QUICK_SUPPLIER_NAME
    row = db.fetch_one(
        """
        SELECT proveedor_id AS id, nombre
        FROM proveedores
        WHERE lower(nombre) = lower(%s)
        ORDER BY updated_at DESC NULLS LAST, created_at DESC
        LIMIT 1
        """,
        (name,),
    )
    if row:
        return {"id": str(row["id"]), "name": row["nombre"], "created": False}

    tax_id = data.supplier_tax_id or placeholder_tax_id()
    with db.transaction() as cur:
        cur.execute(
            """
            INSERT INTO proveedores (nombre, nif, saldo)
            VALUES (%s, %s, 0)
            RETURNING proveedor_id AS id, nombre
            """,
            (name, tax_id),
        )
        created = cur.fetchone()
    json_log("info", "purchasing.supplier.autocreated", supplier_id=str(created["id"]), name=name, tax_id=tax_id)
    return {"id": str(created["id"]), "name": created["nombre"], "created": True}


def create_quick_purchase_order(db, data: QuickPurchaseOrderIn, actor_id: Optional[str] = None) -> dict:
    # Supplier resolution commits on its own; only the order and its log
    # entry are atomic together.
    supplier = resolve_supplier(db, data)

    with db.transaction() as cur:
        cur.execute("SELECT nextval('ordenes_compra_numero_seq') AS seq")
        seq = cur.fetchone()["seq"]
        number = order_number(data.order_date, seq)
        cur.execute(
            """
            INSERT INTO ordenes_compra
              (numero, proveedor_id, fecha, estado, moneda, condiciones_pago, total, impuestos, referencia, created_by)
            VALUES
              (%s, %s, %s, %s, %s, %s, %s, 0, %s, %s)
            RETURNING oc_id AS id, numero, proveedor_id, fecha, estado, moneda, total
            """,
            (
                number,
                supplier["id"],
                data.order_date,
                data.status,
                data.currency,
                data.payment_terms,
                data.total,
                data.reference,
                actor_id,
            ),
        )
        order = cur.fetchone()
        if not order:
            raise CollaboratorError("could not register purchase order")
        order_id = str(order["id"])
        log_id = log_transaction(
            cur,
            TransactionType.PURCHASE_ORDER,
            order_id,
            f"Quick purchase order {number}",
            {
                "purchase_order_id": order_id,
                "number": number,
                "supplier_id": supplier["id"],
                "supplier_created": supplier["created"],
                "date": data.order_date,
                "currency": data.currency,
                "status": data.status,
                "total": data.total,
                "payment_terms": data.payment_terms,
                "reference": data.reference,
            },
            actor_id,
        )

    return {**order, "id": order_id, "supplier": supplier, "transaction_log_id": log_id}


def create_goods_receipt(db, data: GoodsReceiptIn, actor_id: Optional[str] = None) -> dict:
    """
    Receive goods into a warehouse: header, one line row and one inbound
    movement per line, then the log entry, all in one transaction.
    """
    if not data.lines:
        raise ValidationError("at least one line is required")

    with db.transaction() as cur:
        cur.execute(
            """
            INSERT INTO recepciones (oc_id, almacen_id, fecha, estado, notas, created_by)
            VALUES (%s, %s, %s, 'COMPLETADA', %s, %s)
            RETURNING recepcion_id
            """,
            (data.purchase_order_id, data.warehouse_id, data.receipt_date, data.notes, actor_id),
        )
        receipt_id = str(cur.fetchone()["recepcion_id"])

        total = Decimal("0")
        lines_snapshot = []
        for ln in data.lines:
            cur.execute(
                """
                INSERT INTO recepciones_lineas (recepcion_id, producto_id, cantidad, costo)
                VALUES (%s, %s, %s, %s)
                RETURNING recepcion_linea_id
                """,
                (receipt_id, ln.product_id, ln.quantity, ln.cost),
            )
            line_id = str(cur.fetchone()["recepcion_linea_id"])
            mv = record_movement(
                cur,
                ln.product_id,
                data.warehouse_id,
                inbound(ln.quantity),
                f"Goods receipt {receipt_id}",
                ln.cost,
                actor_id,
            )
            line_total = ln.quantity * ln.cost
            total += line_total
            lines_snapshot.append(
                {
                    "line_id": line_id,
                    "product_id": ln.product_id,
                    "quantity": ln.quantity,
                    "cost": ln.cost,
                    "line_total": line_total,
                    "movement_id": mv.id,
                }
            )

        log_id = log_transaction(
            cur,
            TransactionType.GOODS_RECEIPT,
            receipt_id,
            "Goods receipt",
            {
                "receipt_id": receipt_id,
                "purchase_order_id": data.purchase_order_id,
                "warehouse_id": data.warehouse_id,
                "date": data.receipt_date,
                "total": total,
                "lines": lines_snapshot,
                "movement_ids": [ln["movement_id"] for ln in lines_snapshot],
            },
            actor_id,
        )

    return {"id": receipt_id, "total": total, "lines": lines_snapshot, "transaction_log_id": log_id}
