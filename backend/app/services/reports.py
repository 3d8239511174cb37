from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

CURRENCY_PREFIX = "L"


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return d if d.is_finite() else Decimal("0")


def format_currency(value) -> str:
    """Lempira amount with thousands separators and two decimals, e.g. `L 282,750.00`."""
    amount = _to_decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}{CURRENCY_PREFIX} {abs(amount):,.2f}"


def sales_by_customer(db, date_from: Optional[date] = None, date_to: Optional[date] = None) -> list:
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
        SELECT cliente_id, SUM(total) AS total_ventas, SUM(margen) AS margen
        FROM reporte_ventas_cliente
        {where}
        GROUP BY cliente_id
        ORDER BY total_ventas DESC
        """,
        params,
    )


def inventory_aging(db) -> list:
    return db.fetch_all(
        "SELECT producto_id, almacen_id, dias_en_inventario, cantidad, valor FROM reporte_antiguedad_inventario"
    )


def receivables_payables_aging(db) -> dict:
    rows = db.fetch_all("SELECT tipo, tramo, total FROM reporte_antiguedad_cxc_cxp ORDER BY tipo, tramo")
    out: dict = {"receivables": [], "payables": []}
    for r in rows:
        key = "receivables" if r["tipo"] == "CXC" else "payables"
        out[key].append({"bucket": r["tramo"], "total": r["total"]})
    return out


def executive_summary(db) -> dict:
    sales = db.fetch_one(
        """
        SELECT COALESCE(SUM(total), 0)::numeric AS total
        FROM facturas
        WHERE date_trunc('month', fecha_emision) = date_trunc('month', CURRENT_DATE)
        """
    )
    margin = db.fetch_one(
        """
        SELECT COALESCE(SUM(margen), 0)::numeric AS total
        FROM reporte_ventas_cliente
        WHERE date_trunc('month', fecha) = date_trunc('month', CURRENT_DATE)
        """
    )
    turnover = db.fetch_one(
        "SELECT COALESCE(AVG(dias_en_inventario), 0)::numeric AS dias FROM reporte_antiguedad_inventario"
    )
    receivables = db.fetch_one(
        "SELECT COALESCE(SUM(total), 0)::numeric AS total FROM reporte_antiguedad_cxc_cxp WHERE tipo = 'CXC'"
    )
    days = _to_decimal((turnover or {}).get("dias")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return {
        "sales_month": format_currency((sales or {}).get("total")),
        "margin_month": format_currency((margin or {}).get("total")),
        "inventory_days": str(int(days)),
        "overdue_receivables": format_currency((receivables or {}).get("total")),
    }
