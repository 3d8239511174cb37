from typing import Optional

from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import Actor, audit_trail, require_permission
from ..services import sales
from ..services.sales import DeliveryIn, SalesOrderIn

router = APIRouter(prefix="/ventas", tags=["sales"])


@router.get(
    "/pedidos",
    dependencies=[
        Depends(require_permission("ventas:gestionar")),
        Depends(audit_trail("ventas.pedidos.listar")),
    ],
)
def list_orders(status: Optional[str] = None, db: Database = Depends(get_db)):
    return {"data": sales.list_orders(db, status)}


@router.post("/pedidos", status_code=201, dependencies=[Depends(audit_trail("ventas.pedidos.crear"))])
def create_order(
    data: SalesOrderIn,
    actor: Actor = Depends(require_permission("ventas:gestionar")),
    db: Database = Depends(get_db),
):
    return sales.create_order(db, data, actor.id)


@router.post("/entregas", status_code=201, dependencies=[Depends(audit_trail("ventas.entregas.crear"))])
def create_delivery(
    data: DeliveryIn,
    actor: Actor = Depends(require_permission("ventas:gestionar")),
    db: Database = Depends(get_db),
):
    return sales.create_delivery(db, data, actor.id)
