import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as ModelValidationError

from backend.app.errors import NotFoundError, ValidationError
from backend.app.services.accounting import (
    JournalEntryIn,
    JournalLineIn,
    create_journal_entry,
    get_financial_statements,
    get_journal_entry,
)


def _entry(lines, description="Reconocimiento de venta solar"):
    return JournalEntryIn(entry_date="2024-05-01", journal_code="VENTAS", description=description, lines=lines)


def _stub_inserts(fake_db, fail_on_detail=None):
    fake_db.on(
        "INSERT INTO asientos (",
        lambda params: [
            {
                "asiento_id": "as-1",
                "fecha": params[0],
                "diario": params[1],
                "descripcion": params[2],
                "total_debe": params[3],
                "total_haber": params[4],
            }
        ],
    )
    details = []

    def _detail(params):
        details.append(params)
        if fail_on_detail is not None and len(details) == fail_on_detail:
            raise RuntimeError("detail insert failed")
        return [{"asiento_detalle_id": f"ad-{len(details)}"}]

    fake_db.on("INSERT INTO asientos_detalle", _detail)
    return details


def test_sale_recognition_entry(fake_db):
    _stub_inserts(fake_db)
    data = _entry(
        [
            {"account_id": "1101-01", "cost_center_id": "CC-VENTAS", "debit": "282750", "doc_ref": "FAC-HN-0001"},
            {"account_id": "4101-01", "cost_center_id": "CC-VENTAS", "credit": "282750", "doc_ref": "FAC-HN-0001"},
        ]
    )

    out = create_journal_entry(fake_db, data, "u-2")

    entry = out["entry"]
    assert entry["total_debit"] == Decimal("282750")
    assert entry["total_credit"] == Decimal("282750")
    assert [ln["id"] for ln in entry["lines"]] == ["ad-1", "ad-2"]
    _, header_params = fake_db.statements("INSERT INTO asientos (")[0]
    assert header_params[3] == header_params[4] == Decimal("282750")
    logged = json.loads(fake_db.log[0]["payload"])
    assert logged["total_debit"] == "282750.00"
    assert fake_db.log[0]["tipo"] == "ACCOUNTING_ENTRY"
    assert fake_db.log[0]["referencia_id"] == "as-1"


def test_single_line_entry_is_accepted(fake_db):
    details = _stub_inserts(fake_db)
    data = _entry([{"account_id": "1101-01", "debit": "100", "credit": "100"}])

    out = create_journal_entry(fake_db, data)

    assert len(details) == 1
    assert out["entry"]["total_debit"] == out["entry"]["total_credit"] == Decimal("100")


def test_detail_failure_rolls_back_header(fake_db):
    _stub_inserts(fake_db, fail_on_detail=2)
    data = _entry([{"account_id": "1101-01", "debit": "50"}, {"account_id": "4101-01", "credit": "50"}])

    with pytest.raises(RuntimeError):
        create_journal_entry(fake_db, data)

    assert fake_db.rollbacks == 1
    assert fake_db.commits == 0
    assert fake_db.log == []


def test_unbalanced_entry_is_rejected():
    with pytest.raises(ModelValidationError):
        _entry([{"account_id": "1101-01", "debit": "100"}, {"account_id": "4101-01", "credit": "99.98"}])


def test_sub_cent_amounts_are_rejected():
    with pytest.raises(ModelValidationError):
        _entry([{"account_id": "1101-01", "debit": "100.001"}, {"account_id": "4101-01", "credit": "100.004"}])
    with pytest.raises(ModelValidationError):
        _entry(
            [
                {"account_id": "1101-01", "debit": "0.005"},
                {"account_id": "1101-02", "debit": "0.005"},
                {"account_id": "4101-01", "credit": "0.01"},
            ]
        )


def test_header_totals_equal_stored_detail_sums(fake_db):
    details = _stub_inserts(fake_db)
    data = _entry(
        [
            {"account_id": "1101-01", "debit": "0.10"},
            {"account_id": "1101-02", "debit": "0.20"},
            {"account_id": "4101-01", "credit": "0.3"},
        ]
    )

    create_journal_entry(fake_db, data)

    _, header_params = fake_db.statements("INSERT INTO asientos (")[0]
    assert header_params[3] == header_params[4] == Decimal("0.30")
    assert sum(params[3] for params in details) == header_params[3]
    assert sum(params[4] for params in details) == header_params[4]
    assert [params[3] for params in details[:2]] == [Decimal("0.10"), Decimal("0.20")]
    assert details[2][4].as_tuple().exponent == -2


def test_unbalanced_entry_built_without_validation_writes_nothing(fake_db):
    blank = {"cost_center_id": None, "doc_ref": None}
    lines = [
        JournalLineIn.model_construct(account_id="1101-01", debit=Decimal("100.00"), credit=Decimal("0"), **blank),
        JournalLineIn.model_construct(account_id="4101-01", debit=Decimal("0"), credit=Decimal("99.99"), **blank),
    ]
    data = JournalEntryIn.model_construct(
        entry_date=date(2024, 5, 1), journal_code="VENTAS", description=None, lines=lines
    )

    with pytest.raises(ValidationError, match="must balance"):
        create_journal_entry(fake_db, data)
    assert fake_db.executed == []


@pytest.mark.parametrize(
    "line",
    [
        {"account_id": "1101-01"},
        {"account_id": "1101-01", "debit": "-5", "credit": "-5"},
        {"account_id": "  ", "debit": "5", "credit": "5"},
    ],
)
def test_invalid_lines_are_rejected(line):
    with pytest.raises(ModelValidationError):
        _entry([line])


def test_entry_needs_lines():
    with pytest.raises(ModelValidationError):
        _entry([])


def test_missing_entry_is_not_found(fake_db):
    with pytest.raises(NotFoundError):
        get_journal_entry(fake_db, "nope")


def test_financial_statements_reject_reversed_range(fake_db):
    with pytest.raises(ValidationError):
        get_financial_statements(fake_db, date(2024, 6, 1), date(2024, 5, 1))


def test_financial_statements_call_each_generator(fake_db):
    fake_db.on("generar_balance_general", [{"data": {"total_activos": 1}}])
    fake_db.on("generar_estado_resultados", [{"data": {"utilidad_neta": 2}}])
    fake_db.on("generar_flujo_efectivo", [{"data": {"flujo_neto": 3}}])

    out = get_financial_statements(fake_db, date(2024, 1, 1), date(2024, 5, 31))

    assert out == {
        "balance_sheet": {"total_activos": 1},
        "income_statement": {"utilidad_neta": 2},
        "cash_flow": {"flujo_neto": 3},
    }
