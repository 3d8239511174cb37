from ..pagination import paginate


def get_clients(db, page: int = 1, page_size: int = 25) -> dict:
    return paginate(
        db,
        "SELECT cliente_id AS id, codigo, razon_social, nif, limite_credito, saldo, estado FROM clientes ORDER BY razon_social",
        [],
        page,
        page_size,
    )


def get_suppliers(db, page: int = 1, page_size: int = 25) -> dict:
    return paginate(
        db,
        "SELECT proveedor_id AS id, nombre, nif, saldo, condiciones_pago FROM proveedores ORDER BY nombre",
        [],
        page,
        page_size,
    )


def get_products(db, page: int = 1, page_size: int = 25) -> dict:
    return paginate(
        db,
        "SELECT producto_id AS id, sku, descripcion, uom, precio_base, activo FROM productos ORDER BY descripcion",
        [],
        page,
        page_size,
    )


def get_warehouses(db) -> list:
    return db.fetch_all("SELECT almacen_id AS id, nombre, codigo, direccion FROM almacenes ORDER BY nombre")
