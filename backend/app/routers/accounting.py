from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import Actor, audit_trail, require_permission
from ..services import accounting
from ..services.accounting import JournalEntryIn

router = APIRouter(prefix="/contabilidad", tags=["accounting"])


@router.get(
    "/asientos",
    dependencies=[
        Depends(require_permission("contabilidad:libros")),
        Depends(audit_trail("contabilidad.asientos.listar")),
    ],
)
def list_entries(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Database = Depends(get_db),
):
    return {"data": accounting.list_journal_entries(db, date_from, date_to)}


@router.get(
    "/asientos/{entry_id}",
    dependencies=[
        Depends(require_permission("contabilidad:libros")),
        Depends(audit_trail("contabilidad.asientos.consultar")),
    ],
)
def get_entry(entry_id: str, db: Database = Depends(get_db)):
    return accounting.get_journal_entry(db, entry_id)


@router.post("/asientos", status_code=201, dependencies=[Depends(audit_trail("contabilidad.asientos.crear"))])
def create_entry(
    data: JournalEntryIn,
    actor: Actor = Depends(require_permission("contabilidad:libros")),
    db: Database = Depends(get_db),
):
    return accounting.create_journal_entry(db, data, actor.id)


@router.get(
    "/balanza",
    dependencies=[
        Depends(require_permission("contabilidad:libros")),
        Depends(audit_trail("contabilidad.balanza.consultar")),
    ],
)
def trial_balance(cutoff: Optional[date] = None, db: Database = Depends(get_db)):
    return {"data": accounting.get_trial_balance(db, cutoff or date.today())}


@router.get(
    "/estados-financieros",
    dependencies=[
        Depends(require_permission("contabilidad:libros")),
        Depends(audit_trail("contabilidad.estados-financieros.consultar")),
    ],
)
def financial_statements(date_from: date, date_to: date, db: Database = Depends(get_db)):
    return accounting.get_financial_statements(db, date_from, date_to)
