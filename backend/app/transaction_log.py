from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from .pagination import paginate


class TransactionType(str, Enum):
    PURCHASE_ORDER = "PURCHASE_ORDER"
    GOODS_RECEIPT = "GOODS_RECEIPT"
    SALES_ORDER = "SALES_ORDER"
    DELIVERY = "DELIVERY"
    INVENTORY_TRANSFER = "INVENTORY_TRANSFER"
    INVENTORY_ADJUSTMENT = "INVENTORY_ADJUSTMENT"
    INVOICE = "INVOICE"
    ACCOUNTING_ENTRY = "ACCOUNTING_ENTRY"


def _json_default(value: Any):
    # Decimals go out as strings so amounts survive the round trip exactly.
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"cannot serialize {type(value).__name__} in transaction payload")


def dump_payload(payload: dict) -> str:
    return json.dumps(payload, default=_json_default, sort_keys=True)


def log_transaction(
    cur,
    tx_type: TransactionType,
    reference_id,
    description: str,
    payload: dict,
    actor_id: Optional[str] = None,
) -> str:
    """
    Append one audit record for a business operation.

    Call it last, on the same cursor as the document it describes, so the
    record commits or rolls back together with it.
    """
    if reference_id is None or str(reference_id).strip() == "":
        raise ValueError("transaction log entries need a reference id")
    cur.execute(
        """
        INSERT INTO transacciones_log (tipo, referencia_id, descripcion, payload, usuario_id)
        VALUES (%s, %s, %s, %s::jsonb, %s)
        RETURNING transaccion_id
        """,
        (
            TransactionType(tx_type).value,
            str(reference_id),
            description,
            dump_payload(payload),
            actor_id,
        ),
    )
    return str(cur.fetchone()["transaccion_id"])


def list_transactions(
    db,
    tx_type: Optional[TransactionType] = None,
    reference_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
) -> dict:
    sql = """
        SELECT transaccion_id AS id, tipo, referencia_id, descripcion, payload, usuario_id, created_at
        FROM transacciones_log
        WHERE 1=1
    """
    params: list = []
    if tx_type:
        sql += " AND tipo = %s"
        params.append(TransactionType(tx_type).value)
    if reference_id:
        sql += " AND referencia_id = %s"
        params.append(reference_id)
    sql += " ORDER BY created_at DESC, transaccion_id DESC"
    return paginate(db, sql, params, page, page_size)
