from typing import Optional

from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import Actor, audit_trail, require_permission
from ..services import purchasing
from ..services.purchasing import GoodsReceiptIn, PurchaseOrderIn, QuickPurchaseOrderIn
from ..validation import PurchaseOrderStatus

router = APIRouter(prefix="/compras", tags=["purchasing"])


@router.get(
    "/ordenes",
    dependencies=[
        Depends(require_permission("compras:gestionar")),
        Depends(audit_trail("compras.ordenes.listar")),
    ],
)
def list_orders(status: Optional[PurchaseOrderStatus] = None, db: Database = Depends(get_db)):
    return {"data": purchasing.list_purchase_orders(db, status)}


@router.post("/ordenes", status_code=201, dependencies=[Depends(audit_trail("compras.ordenes.crear"))])
def create_order(
    data: PurchaseOrderIn,
    actor: Actor = Depends(require_permission("compras:gestionar")),
    db: Database = Depends(get_db),
):
    return purchasing.create_purchase_order(db, data, actor.id)


@router.post(
    "/ordenes/rapida",
    status_code=201,
    dependencies=[Depends(audit_trail("compras.ordenes.rapida"))],
)
def create_quick_order(
    data: QuickPurchaseOrderIn,
    actor: Actor = Depends(require_permission("compras:gestionar")),
    db: Database = Depends(get_db),
):
    return purchasing.create_quick_purchase_order(db, data, actor.id)


@router.post("/recepciones", status_code=201, dependencies=[Depends(audit_trail("compras.recepciones.crear"))])
def create_receipt(
    data: GoodsReceiptIn,
    actor: Actor = Depends(require_permission("compras:gestionar")),
    db: Database = Depends(get_db),
):
    return purchasing.create_goods_receipt(db, data, actor.id)
