from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import audit_trail, require_permission
from ..services import catalogs

router = APIRouter(
    prefix="/catalogos",
    tags=["catalogs"],
    dependencies=[Depends(require_permission("catalogos:ver"))],
)


@router.get("/clientes", dependencies=[Depends(audit_trail("catalogos.clientes.listar"))])
def list_clients(page: int = 1, page_size: int = 25, db: Database = Depends(get_db)):
    return catalogs.get_clients(db, page, page_size)


@router.get("/proveedores", dependencies=[Depends(audit_trail("catalogos.proveedores.listar"))])
def list_suppliers(page: int = 1, page_size: int = 25, db: Database = Depends(get_db)):
    return catalogs.get_suppliers(db, page, page_size)


@router.get("/productos", dependencies=[Depends(audit_trail("catalogos.productos.listar"))])
def list_products(page: int = 1, page_size: int = 25, db: Database = Depends(get_db)):
    return catalogs.get_products(db, page, page_size)


@router.get("/almacenes", dependencies=[Depends(audit_trail("catalogos.almacenes.listar"))])
def list_warehouses(db: Database = Depends(get_db)):
    return {"data": catalogs.get_warehouses(db)}
