from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from ..errors import CollaboratorError
from ..transaction_log import TransactionType, dump_payload, log_transaction
from ..validation import CurrencyCode, NonNegativeDecimal, PositiveDecimal, RequiredText, VoucherType


class InvoiceTaxIn(BaseModel):
    tax_type_id: str
    rate: NonNegativeDecimal


class InvoiceLineIn(BaseModel):
    description: RequiredText
    quantity: PositiveDecimal
    unit_price: PositiveDecimal
    taxes: List[InvoiceTaxIn] = Field(default_factory=list)


class InvoiceIn(BaseModel):
    sales_order_id: str
    issue_date: date
    currency: CurrencyCode
    voucher_type: VoucherType
    lines: List[InvoiceLineIn] = Field(min_length=1)


def list_invoices(db, client_id: Optional[str] = None, status: Optional[str] = None) -> list:
    conditions = []
    params: list = []
    if client_id:
        conditions.append("cliente_id = %s")
        params.append(client_id)
    if status:
        conditions.append("estado = %s")
        params.append(status.strip().upper())
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return db.fetch_all(
        f"""
        SELECT factura_id AS id, numero, cliente_id, fecha_emision, moneda, total, estado
        FROM facturas
        {where}
        ORDER BY fecha_emision DESC
        LIMIT 100
        """,
        params,
    )


def create_invoice(db, data: InvoiceIn, actor_id: Optional[str] = None) -> dict:
    # Taxes, totals and numbering are computed by emitir_factura.
    payload = {
        "pedidoId": data.sales_order_id,
        "fechaEmision": data.issue_date,
        "moneda": data.currency,
        "tipoComprobante": data.voucher_type,
        "lineas": [
            {
                "descripcion": ln.description,
                "cantidad": ln.quantity,
                "precioUnitario": ln.unit_price,
                "impuestos": [{"tipoImpuestoId": t.tax_type_id, "tasa": t.rate} for t in ln.taxes],
            }
            for ln in data.lines
        ],
    }
    with db.transaction() as cur:
        cur.execute("SELECT emitir_factura(%s::jsonb) AS factura_id", (dump_payload(payload),))
        row = cur.fetchone()
        if not row or not row.get("factura_id"):
            raise CollaboratorError("could not issue invoice")
        invoice_id = str(row["factura_id"])
        cur.execute(
            "SELECT numero, total FROM facturas WHERE factura_id = %s",
            (invoice_id,),
        )
        issued = cur.fetchone() or {}
        log_id = log_transaction(
            cur,
            TransactionType.INVOICE,
            invoice_id,
            f"Invoice {issued.get('numero') or invoice_id} issued",
            {
                "invoice_id": invoice_id,
                "number": issued.get("numero"),
                "total": issued.get("total"),
                **payload,
            },
            actor_id,
        )
    return {
        "id": invoice_id,
        "number": issued.get("numero"),
        "total": issued.get("total"),
        "transaction_log_id": log_id,
    }
