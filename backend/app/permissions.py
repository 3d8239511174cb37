from __future__ import annotations

from enum import Enum
from typing import Union


class Role(str, Enum):
    ADMINISTRADOR = "ADMINISTRADOR"
    CONTADOR = "CONTADOR"
    VENTAS = "VENTAS"
    COMPRAS = "COMPRAS"
    ALMACEN = "ALMACEN"
    AUDITOR = "AUDITOR"


ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.ADMINISTRADOR: frozenset(
        {
            "catalogos:ver",
            "catalogos:crear",
            "catalogos:editar",
            "catalogos:aprobar",
            "catalogos:anular",
            "inventario:ver",
            "inventario:movimientos",
            "compras:gestionar",
            "ventas:gestionar",
            "facturacion:emitir",
            "contabilidad:libros",
            "contabilidad:asientos",
            "reportes:ver",
            "usuarios:gestionar",
        }
    ),
    Role.CONTADOR: frozenset(
        {
            "catalogos:ver",
            "facturacion:emitir",
            "contabilidad:libros",
            "contabilidad:asientos",
            "reportes:ver",
        }
    ),
    Role.VENTAS: frozenset({"catalogos:ver", "ventas:gestionar", "reportes:ver"}),
    Role.COMPRAS: frozenset({"catalogos:ver", "compras:gestionar", "reportes:ver"}),
    Role.ALMACEN: frozenset({"catalogos:ver", "inventario:movimientos", "inventario:ver"}),
    Role.AUDITOR: frozenset({"reportes:ver", "catalogos:ver", "contabilidad:libros"}),
}

_missing = [r.value for r in Role if r not in ROLE_PERMISSIONS]
if _missing:
    raise RuntimeError(f"roles without a permission set: {', '.join(_missing)}")


def parse_role(value: Union[Role, str]) -> Role:
    if isinstance(value, Role):
        return value
    raw = str(value or "").strip().upper()
    try:
        return Role(raw)
    except ValueError:
        raise ValueError(f"unknown role: {value!r}") from None


def permissions_for(role: Union[Role, str]) -> frozenset[str]:
    return ROLE_PERMISSIONS[parse_role(role)]
