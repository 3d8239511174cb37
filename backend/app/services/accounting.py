from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from ..errors import CollaboratorError, NotFoundError, ValidationError
from ..transaction_log import TransactionType, log_transaction
from ..validation import MoneyAmount, OptionalText, RequiredText


class JournalLineIn(BaseModel):
    account_id: RequiredText
    cost_center_id: OptionalText = None
    debit: MoneyAmount = Decimal("0")
    credit: MoneyAmount = Decimal("0")
    doc_ref: OptionalText = None

    @model_validator(mode="after")
    def _has_amount(self):
        if self.debit == 0 and self.credit == 0:
            raise ValueError("each line needs a debit or a credit amount")
        return self


class JournalEntryIn(BaseModel):
    entry_date: date
    journal_code: RequiredText
    description: OptionalText = None
    lines: List[JournalLineIn] = Field(min_length=1)

    @model_validator(mode="after")
    def _balanced(self):
        total_debit = sum((ln.debit for ln in self.lines), Decimal("0"))
        total_credit = sum((ln.credit for ln in self.lines), Decimal("0"))
        if total_debit != total_credit:
            raise ValueError("entry must balance: total debit must equal total credit")
        return self


def list_journal_entries(db, date_from: Optional[date] = None, date_to: Optional[date] = None) -> list:
    conditions = []
    params: list = []
    if date_from:
        conditions.append("fecha >= %s")
        params.append(date_from)
    if date_to:
        conditions.append("fecha <= %s")
        params.append(date_to)
    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return db.fetch_all(
        f"""
        SELECT asiento_id AS id, fecha, diario, descripcion, total_debe, total_haber
        FROM asientos
        {where}
        ORDER BY fecha DESC
        LIMIT 200
        """,
        params,
    )


def get_journal_entry(db, entry_id: str) -> dict:
    entry = db.fetch_one(
        """
        SELECT asiento_id AS id, fecha, diario, descripcion, total_debe, total_haber, created_by, created_at
        FROM asientos
        WHERE asiento_id = %s
        """,
        (entry_id,),
    )
    if not entry:
        raise NotFoundError("journal entry not found")
    details = db.fetch_all(
        """
        SELECT asiento_detalle_id AS id, cuenta_id, centro_costo_id, debe, haber, doc_ref
        FROM asientos_detalle
        WHERE asiento_id = %s
        ORDER BY asiento_detalle_id
        """,
        (entry_id,),
    )
    return {**entry, "lineas": details}


def create_journal_entry(db, data: JournalEntryIn, actor_id: Optional[str] = None) -> dict:
    """
    Post a journal entry.

    Line amounts arrive in whole cents, so the header totals are exact sums
    of the stored details. Debit and credit totals must match exactly. Every
    line is inserted as given. Header, details and the log entry commit or
    roll back together.
    """
    if not data.lines:
        raise ValidationError("at least one line is required")

    total_debit = sum((Decimal(str(ln.debit)) for ln in data.lines), Decimal("0"))
    total_credit = sum((Decimal(str(ln.credit)) for ln in data.lines), Decimal("0"))
    if total_debit != total_credit:
        raise ValidationError("entry must balance: total debit must equal total credit")

    with db.transaction() as cur:
        cur.execute(
            """
            INSERT INTO asientos (fecha, diario, descripcion, total_debe, total_haber, created_by)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING asiento_id, fecha, diario, descripcion, total_debe, total_haber
            """,
            (data.entry_date, data.journal_code, data.description, total_debit, total_credit, actor_id),
        )
        header = cur.fetchone()
        if not header:
            raise CollaboratorError("could not register journal entry")
        entry_id = str(header["asiento_id"])

        details = []
        for ln in data.lines:
            cur.execute(
                """
                INSERT INTO asientos_detalle (asiento_id, cuenta_id, centro_costo_id, debe, haber, doc_ref)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING asiento_detalle_id
                """,
                (entry_id, ln.account_id, ln.cost_center_id, ln.debit, ln.credit, ln.doc_ref),
            )
            details.append(
                {
                    "id": str(cur.fetchone()["asiento_detalle_id"]),
                    "account_id": ln.account_id,
                    "cost_center_id": ln.cost_center_id,
                    "debit": ln.debit,
                    "credit": ln.credit,
                    "doc_ref": ln.doc_ref,
                }
            )

        entry = {
            "id": entry_id,
            "date": data.entry_date,
            "journal_code": data.journal_code,
            "description": data.description,
            "total_debit": total_debit,
            "total_credit": total_credit,
            "lines": details,
        }
        log_id = log_transaction(
            cur,
            TransactionType.ACCOUNTING_ENTRY,
            entry_id,
            data.description or f"Journal entry {data.journal_code}",
            entry,
            actor_id,
        )

    return {"entry": entry, "transaction_log_id": log_id}


def get_trial_balance(db, cutoff: date) -> list:
    return db.fetch_all(
        """
        SELECT cuenta_id, nombre, debe, haber, saldo
        FROM balanza_comprobacion(%s)
        """,
        (cutoff,),
    )


def get_financial_statements(db, date_from: date, date_to: date) -> dict:
    if date_from > date_to:
        raise ValidationError("date_from must be on or before date_to")
    out = {}
    for key, fn in (
        ("balance_sheet", "generar_balance_general"),
        ("income_statement", "generar_estado_resultados"),
        ("cash_flow", "generar_flujo_efectivo"),
    ):
        row = db.fetch_one(f"SELECT {fn}(%s, %s) AS data", (date_from, date_to))
        out[key] = (row or {}).get("data")
    return out
