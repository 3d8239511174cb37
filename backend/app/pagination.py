from typing import Any, Optional, Sequence

from .errors import ValidationError

MAX_PAGE_SIZE = 200


def paginate(db, sql: str, params: Optional[Sequence[Any]], page: int = 1, page_size: int = 25) -> dict:
    """
    Run a SELECT one page at a time and report the total row count.

    `sql` must be a complete SELECT without LIMIT/OFFSET; it is reused
    verbatim as a subquery for the count.
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    base_params = list(params or [])
    offset = (page - 1) * page_size
    rows = db.fetch_all(f"{sql} LIMIT %s OFFSET %s", base_params + [page_size, offset])
    count_row = db.fetch_one(f"SELECT COUNT(*) AS count FROM ({sql}) q", base_params)
    total = int((count_row or {}).get("count") or 0)
    return {
        "data": rows,
        "pagination": {"total": total, "page": page, "page_size": page_size},
    }
