from backend.app.services.reports import executive_summary, format_currency, receivables_payables_aging


def test_format_currency():
    assert format_currency(282750) == "L 282,750.00"
    assert format_currency("1234.565") == "L 1,234.57"
    assert format_currency(None) == "L 0.00"
    assert format_currency(-5) == "-L 5.00"


def test_aging_groups_by_side(fake_db):
    fake_db.on(
        "FROM reporte_antiguedad_cxc_cxp ORDER BY",
        [
            {"tipo": "CXC", "tramo": "0-30", "total": 132750},
            {"tipo": "CXP", "tramo": "31-60", "total": 125000},
        ],
    )
    out = receivables_payables_aging(fake_db)
    assert out == {
        "receivables": [{"bucket": "0-30", "total": 132750}],
        "payables": [{"bucket": "31-60", "total": 125000}],
    }


def test_executive_summary_formats_amounts(fake_db):
    fake_db.on("FROM facturas", [{"total": 282750}])
    fake_db.on("dias_en_inventario", [{"dias": "12.6"}])
    out = executive_summary(fake_db)
    assert out["sales_month"] == "L 282,750.00"
    assert out["inventory_days"] == "13"
    assert out["margin_month"] == "L 0.00"
