from typing import Optional

from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import Actor, audit_trail, require_permission
from ..services import inventory
from ..services.inventory import AdjustmentIn, TransferIn

router = APIRouter(prefix="/inventario", tags=["inventory"])


@router.get(
    "/kardex/{product_id}",
    dependencies=[
        Depends(require_permission("inventario:ver")),
        Depends(audit_trail("inventario.kardex.consultar")),
    ],
)
def kardex(product_id: str, warehouse_id: Optional[str] = None, db: Database = Depends(get_db)):
    return {"data": inventory.get_kardex(db, product_id, warehouse_id)}


@router.get(
    "/valuacion",
    dependencies=[
        Depends(require_permission("inventario:ver")),
        Depends(audit_trail("inventario.valuacion.listar")),
    ],
)
def valuation(db: Database = Depends(get_db)):
    return {"data": inventory.get_valuation(db)}


@router.post("/ajustes", status_code=201, dependencies=[Depends(audit_trail("inventario.ajustes.crear"))])
def create_adjustment(
    data: AdjustmentIn,
    actor: Actor = Depends(require_permission("inventario:movimientos")),
    db: Database = Depends(get_db),
):
    return inventory.create_adjustment(db, data, actor.id)


@router.post(
    "/transferencias",
    status_code=201,
    dependencies=[Depends(audit_trail("inventario.transferencias.crear"))],
)
def create_transfer(
    data: TransferIn,
    actor: Actor = Depends(require_permission("inventario:movimientos")),
    db: Database = Depends(get_db),
):
    return inventory.create_transfer(db, data, actor.id)
