from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from ..db import Database, get_db
from ..deps import audit_trail, require_permission
from ..services import reports

router = APIRouter(
    prefix="/reportes",
    tags=["reports"],
    dependencies=[Depends(require_permission("reportes:ver"))],
)


@router.get("/ventas", dependencies=[Depends(audit_trail("reportes.ventas"))])
def sales_report(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Database = Depends(get_db),
):
    return {"data": reports.sales_by_customer(db, date_from, date_to)}


@router.get("/inventario", dependencies=[Depends(audit_trail("reportes.inventario"))])
def inventory_report(db: Database = Depends(get_db)):
    return {"data": reports.inventory_aging(db)}


@router.get("/cartera", dependencies=[Depends(audit_trail("reportes.cartera"))])
def aging_report(db: Database = Depends(get_db)):
    return reports.receivables_payables_aging(db)


@router.get("/resumen", dependencies=[Depends(audit_trail("reportes.resumen"))])
def executive_summary(db: Database = Depends(get_db)):
    return reports.executive_summary(db)
