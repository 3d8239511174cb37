import pytest

from backend.app.errors import ValidationError
from backend.app.pagination import paginate


def test_paginate_applies_limit_offset_and_counts(fake_db):
    fake_db.on("LIMIT %s OFFSET %s", [{"id": 3}, {"id": 4}])
    fake_db.on("SELECT COUNT(*) AS count", [{"count": 12}])

    out = paginate(fake_db, "SELECT id FROM clientes WHERE estado = %s ORDER BY id", ["ACTIVO"], page=2, page_size=2)

    assert out == {"data": [{"id": 3}, {"id": 4}], "pagination": {"total": 12, "page": 2, "page_size": 2}}
    page_sql, page_params = fake_db.executed[0]
    assert page_sql.endswith("LIMIT %s OFFSET %s")
    assert page_params == ("ACTIVO", 2, 2)
    _, count_params = fake_db.executed[1]
    assert count_params == ("ACTIVO",)


def test_paginate_without_rows(fake_db):
    out = paginate(fake_db, "SELECT id FROM clientes", None)
    assert out["data"] == []
    assert out["pagination"] == {"total": 0, "page": 1, "page_size": 25}


@pytest.mark.parametrize("page,page_size", [(0, 25), (-1, 25), (1, 0), (1, 201)])
def test_paginate_rejects_out_of_range(fake_db, page, page_size):
    with pytest.raises(ValidationError):
        paginate(fake_db, "SELECT 1", [], page, page_size)
    assert fake_db.executed == []
