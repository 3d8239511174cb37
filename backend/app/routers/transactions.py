from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..db import Database, get_db
from ..deps import audit_trail, require_permission
from ..transaction_log import TransactionType, list_transactions

router = APIRouter(prefix="/transacciones", tags=["transactions"])


@router.get(
    "",
    dependencies=[
        Depends(require_permission("reportes:ver")),
        Depends(audit_trail("transacciones.listar")),
    ],
)
def list_log(
    tx_type: Optional[TransactionType] = Query(None, alias="type"),
    reference_id: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
    db: Database = Depends(get_db),
):
    return list_transactions(db, tx_type, reference_id, page, page_size)
