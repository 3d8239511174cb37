#!/usr/bin/env python3
"""
Load demo data. Safe to run repeatedly: every record is looked up by its
natural key first and only inserted when missing.
"""
import argparse
import json
import os
from datetime import date

import psycopg
from psycopg.rows import dict_row

from backend.app.security import hash_password

DEMO_PASSWORD = "Demo123*"

ACCOUNTS = [
    ("1101-01", "Caja y bancos", "ACTIVO"),
    ("1201-01", "Clientes", "ACTIVO"),
    ("1301-01", "Inventario de mercadería", "ACTIVO"),
    ("2101-01", "Proveedores", "PASIVO"),
    ("3101-01", "Capital social", "PATRIMONIO"),
    ("4101-01", "Ventas", "INGRESO"),
    ("5101-01", "Costo de ventas", "GASTO"),
]


def find_or_create(cur, select_sql: str, select_params, insert_sql: str, insert_params) -> str:
    cur.execute(select_sql, select_params)
    row = cur.fetchone()
    if row:
        return row["id"]
    cur.execute(insert_sql, insert_params)
    return cur.fetchone()["id"]


def seed(cur, today: date) -> dict:
    password_hash = hash_password(DEMO_PASSWORD)

    admin_id = find_or_create(
        cur,
        "SELECT id FROM usuarios WHERE email = %s",
        ("director@solarishn.com",),
        "INSERT INTO usuarios (email, password_hash, rol) VALUES (%s, %s, %s) RETURNING id",
        ("director@solarishn.com", password_hash, "ADMINISTRADOR"),
    )
    finance_id = find_or_create(
        cur,
        "SELECT id FROM usuarios WHERE email = %s",
        ("finanzas@solarishn.com",),
        "INSERT INTO usuarios (email, password_hash, rol) VALUES (%s, %s, %s) RETURNING id",
        ("finanzas@solarishn.com", password_hash, "CONTADOR"),
    )

    tax15_id = find_or_create(
        cur,
        "SELECT tipo_impuesto_id AS id FROM tipos_impuesto WHERE nombre = %s",
        ("ISV 15%",),
        "INSERT INTO tipos_impuesto (nombre, tasa, tipo, aplicacion) VALUES (%s, %s, %s, %s) RETURNING tipo_impuesto_id AS id",
        ("ISV 15%", 15, "ISV", "VENTA"),
    )
    find_or_create(
        cur,
        "SELECT tipo_impuesto_id AS id FROM tipos_impuesto WHERE nombre = %s",
        ("ISV 18%",),
        "INSERT INTO tipos_impuesto (nombre, tasa, tipo, aplicacion) VALUES (%s, %s, %s, %s) RETURNING tipo_impuesto_id AS id",
        ("ISV 18%", 18, "ISV", "VENTA"),
    )

    for account_id, name, kind in ACCOUNTS:
        cur.execute(
            "INSERT INTO cuentas_contables (cuenta_id, nombre, tipo) VALUES (%s, %s, %s) ON CONFLICT DO NOTHING",
            (account_id, name, kind),
        )

    client_id = find_or_create(
        cur,
        "SELECT cliente_id AS id FROM clientes WHERE codigo = %s",
        ("CLI-HN-001",),
        """
        INSERT INTO clientes (codigo, razon_social, nif, direccion, contactos, limite_credito, saldo, estado, created_by)
        VALUES (%s, %s, %s, %s::jsonb, %s::jsonb, %s, %s, %s, %s)
        RETURNING cliente_id AS id
        """,
        (
            "CLI-HN-001",
            "Industria Solar del Norte",
            "08011999123456",
            json.dumps({"ciudad": "San Pedro Sula", "direccion": "Bulevar del Este, Km 5"}),
            json.dumps([{"nombre": "María Ruiz", "cargo": "Compras", "telefono": "+504 9999-0001"}]),
            500000,
            185000,
            "ACTIVO",
            admin_id,
        ),
    )

    supplier_id = find_or_create(
        cur,
        "SELECT proveedor_id AS id FROM proveedores WHERE nombre = %s",
        ("Proveedora Andina HN",),
        """
        INSERT INTO proveedores (nombre, nif, direccion, contactos, condiciones_pago, saldo, created_by)
        VALUES (%s, %s, %s::jsonb, %s::jsonb, %s, %s, %s)
        RETURNING proveedor_id AS id
        """,
        (
            "Proveedora Andina HN",
            "08011990000123",
            json.dumps({"ciudad": "Tegucigalpa", "direccion": "Col. San Ignacio, calle 3"}),
            json.dumps([{"nombre": "Carlos Soto", "cargo": "Ventas", "telefono": "+504 9876-1111"}]),
            "Contado 0 días",
            95000,
            admin_id,
        ),
    )

    product_id = find_or_create(
        cur,
        "SELECT producto_id AS id FROM productos WHERE sku = %s",
        ("SOL-MOD-500W",),
        """
        INSERT INTO productos
          (sku, descripcion, uom, familia, tipo, tipo_impuesto_id, costo_estandar, costo_promedio, precio_base, activo, created_by)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING producto_id AS id
        """,
        (
            "SOL-MOD-500W",
            "Módulo solar monocristalino 500W",
            "Unidad",
            "Paneles solares",
            "BIEN",
            tax15_id,
            210.5,
            208.3,
            325,
            True,
            admin_id,
        ),
    )

    warehouse_id = find_or_create(
        cur,
        "SELECT almacen_id AS id FROM almacenes WHERE codigo = %s",
        ("ALM-CEN",),
        "INSERT INTO almacenes (codigo, nombre, direccion, created_by) VALUES (%s, %s, %s::jsonb, %s) RETURNING almacen_id AS id",
        ("ALM-CEN", "Centro logístico SPS", json.dumps({"ciudad": "San Pedro Sula", "tipo": "Principal"}), admin_id),
    )

    # Opening balance goes through the ledger so the kardex starts at 125.5.
    cur.execute(
        "SELECT 1 FROM stock WHERE producto_id = %s AND almacen_id = %s",
        (product_id, warehouse_id),
    )
    if not cur.fetchone():
        cur.execute(
            "SELECT movimiento_id FROM registrar_movimiento_inventario(%s, %s, %s, %s, %s, %s)",
            (product_id, warehouse_id, 125.5, "Saldo inicial", 208.3, admin_id),
        )

    order_id = find_or_create(
        cur,
        "SELECT pedido_id AS id FROM pedidos WHERE cliente_id = %s AND fecha = %s",
        (client_id, today),
        """
        INSERT INTO pedidos (cliente_id, fecha, estado, moneda, condiciones_pago, vendedor_id, total, created_by)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING pedido_id AS id
        """,
        (client_id, today, "FACTURADO", "HNL", "Crédito 30 días", admin_id, 245000, admin_id),
    )
    find_or_create(
        cur,
        "SELECT pedido_linea_id AS id FROM pedidos_lineas WHERE pedido_id = %s AND producto_id = %s",
        (order_id, product_id),
        "INSERT INTO pedidos_lineas (pedido_id, producto_id, cantidad, precio, descuentos) VALUES (%s, %s, %s, %s, %s) RETURNING pedido_linea_id AS id",
        (order_id, product_id, 180, 360, 0),
    )

    invoice_id = find_or_create(
        cur,
        "SELECT factura_id AS id FROM facturas WHERE numero = %s",
        ("FAC-HN-0001",),
        """
        INSERT INTO facturas
          (numero, cliente_id, pedido_id, fecha_emision, fecha_vencimiento, moneda, tipo_comprobante,
           subtotal, impuestos, total, saldo, estado, created_by)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s, %s, %s, %s)
        RETURNING factura_id AS id
        """,
        (
            "FAC-HN-0001",
            client_id,
            order_id,
            today,
            today,
            "HNL",
            "FACTURA",
            245000,
            json.dumps([{"tipo": "ISV", "porcentaje": 15, "monto": 37750}]),
            282750,
            132750,
            "EMITIDA",
            admin_id,
        ),
    )
    # Keep issued numbers ahead of the seeded invoice.
    cur.execute("SELECT setval('facturas_numero_seq', GREATEST(last_value, 1)) FROM facturas_numero_seq")

    entry_id = find_or_create(
        cur,
        "SELECT asiento_id AS id FROM asientos WHERE descripcion = %s",
        ("Reconocimiento de venta solar",),
        """
        INSERT INTO asientos (fecha, diario, descripcion, total_debe, total_haber, created_by)
        VALUES (%s, %s, %s, %s, %s, %s)
        RETURNING asiento_id AS id
        """,
        (today, "VENTAS", "Reconocimiento de venta solar", 282750, 282750, finance_id),
    )
    for account_id, debit, credit in (("1101-01", 282750, 0), ("4101-01", 0, 282750)):
        find_or_create(
            cur,
            "SELECT asiento_detalle_id AS id FROM asientos_detalle WHERE asiento_id = %s AND cuenta_id = %s",
            (entry_id, account_id),
            """
            INSERT INTO asientos_detalle (asiento_id, cuenta_id, centro_costo_id, debe, haber, doc_ref)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING asiento_detalle_id AS id
            """,
            (entry_id, account_id, "CC-VENTAS", debit, credit, "FAC-HN-0001"),
        )

    return {
        "admin_id": admin_id,
        "client_id": client_id,
        "supplier_id": supplier_id,
        "product_id": product_id,
        "warehouse_id": warehouse_id,
        "invoice_id": invoice_id,
        "entry_id": entry_id,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Insert demo data (idempotent).")
    parser.add_argument(
        "--db",
        default=os.getenv("DATABASE_URL") or "postgresql://localhost/erp",
        help="Postgres connection string (defaults to $DATABASE_URL).",
    )
    args = parser.parse_args()

    with psycopg.connect(args.db, row_factory=dict_row) as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                seed(cur, date.today())

    print("OK")
    print(f"users: director@solarishn.com, finanzas@solarishn.com (password: {DEMO_PASSWORD})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
