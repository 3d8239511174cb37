from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BeforeValidator, Field, StringConstraints

CENT = Decimal("0.01")


def _to_upper_str(v):
    if v is None:
        return v
    return str(v).strip().upper()


def _strip_or_none(v):
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _to_cents(v: Decimal) -> Decimal:
    if v != v.quantize(CENT):
        raise ValueError("amount must have at most two decimal places")
    return v.quantize(CENT)


# Canonical codes mirror the CHECK constraints in `backend/db/migrations/001_init.sql`.
CurrencyCode = Annotated[Literal["HNL", "USD"], BeforeValidator(_to_upper_str)]
PurchaseOrderStatus = Annotated[
    Literal["BORRADOR", "PENDIENTE", "APROBADA", "RECIBIDA", "CANCELADA"],
    BeforeValidator(_to_upper_str),
]
VoucherType = Annotated[Literal["FACTURA", "BOLETA", "TICKET", "PROFORMA"], BeforeValidator(_to_upper_str)]

PositiveDecimal = Annotated[Decimal, Field(gt=0)]
NonNegativeDecimal = Annotated[Decimal, Field(ge=0)]
# Fits the numeric(18,2) ledger columns exactly.
MoneyAmount = Annotated[Decimal, Field(ge=0, lt=Decimal("1e16")), AfterValidator(_to_cents)]

OptionalText = Annotated[Optional[str], BeforeValidator(_strip_or_none)]
RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
