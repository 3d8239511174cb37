from typing import Optional

from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import Actor, audit_trail, require_permission
from ..services import billing
from ..services.billing import InvoiceIn

router = APIRouter(prefix="/facturacion", tags=["billing"])


@router.get(
    "/facturas",
    dependencies=[
        Depends(require_permission("facturacion:emitir")),
        Depends(audit_trail("facturacion.facturas.listar")),
    ],
)
def list_invoices(client_id: Optional[str] = None, status: Optional[str] = None, db: Database = Depends(get_db)):
    return {"data": billing.list_invoices(db, client_id, status)}


@router.post("/facturas", status_code=201, dependencies=[Depends(audit_trail("facturacion.facturas.crear"))])
def create_invoice(
    data: InvoiceIn,
    actor: Actor = Depends(require_permission("facturacion:emitir")),
    db: Database = Depends(get_db),
):
    return billing.create_invoice(db, data, actor.id)
