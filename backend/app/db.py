from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

from fastapi import HTTPException, Request
from psycopg import errors as pg_errors
from psycopg.rows import dict_row

# psycopg3 connection pooling lives in a separate package.
from psycopg_pool import ConnectionPool

from .logs import compact_sql, json_log

T = TypeVar("T")


class Database:
    """
    Owns the connection pool for the lifetime of the process.

    Built once at startup and handed to every service that needs it; nothing
    in the app reaches for a module-level pool.
    """

    def __init__(
        self,
        conninfo: str,
        *,
        min_size: int = 1,
        max_size: int = 20,
        timeout: float = 30.0,
    ) -> None:
        # Keep row_factory=dict_row so rows read like the column names in SQL.
        self.pool = ConnectionPool(
            conninfo=conninfo,
            min_size=min_size,
            max_size=max_size,
            timeout=timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )

    @classmethod
    def from_settings(cls, settings) -> "Database":
        return cls(
            settings.db_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=float(settings.db_pool_timeout),
        )

    def open(self) -> None:
        self.pool.open()

    def close(self) -> None:
        self.pool.close()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        # The pool commits a pending transaction on clean exit, rolls back on
        # error, and always takes the connection back.
        with self.pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """
        One atomic unit of work: BEGIN on entry, COMMIT on clean exit,
        ROLLBACK and re-raise on any exception. The connection is returned
        to the pool on every path.
        """
        with self.pool.connection() as conn:
            try:
                with conn.transaction():
                    with conn.cursor() as cur:
                        yield cur
            except (HTTPException, pg_errors.RaiseException) as exc:
                # Business rule rejections: ours, or RAISE EXCEPTION from a stored function.
                detail = exc.detail if isinstance(exc, HTTPException) else str(exc).strip()
                json_log("warning", "db.transaction.rollback", error=str(detail), error_type=type(exc).__name__)
                raise
            except Exception as exc:
                json_log("error", "db.transaction.rollback", error=str(exc), error_type=type(exc).__name__)
                raise

    def run_in_transaction(self, work: Callable[[Any], T]) -> T:
        with self.transaction() as cur:
            return work(cur)

    def fetch_all(self, sql: str, params: Optional[Sequence[Any]] = None) -> list:
        json_log("debug", "db.query", sql=compact_sql(sql), params=list(params or []))
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or ())
                return cur.fetchall()

    def fetch_one(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[dict]:
        json_log("debug", "db.query", sql=compact_sql(sql), params=list(params or []))
        with self.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params or ())
                return cur.fetchone()

    def ping(self) -> None:
        self.fetch_one("SELECT 1 AS ok")


def get_db(request: Request) -> Database:
    return request.app.state.db
