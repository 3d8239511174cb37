from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from psycopg import errors as pg_errors

from .config import settings
from .db import Database
from .logs import json_log
from .routers.accounting import router as accounting_router
from .routers.auth import router as auth_router
from .routers.billing import router as billing_router
from .routers.catalogs import router as catalogs_router
from .routers.inventory import router as inventory_router
from .routers.purchasing import router as purchasing_router
from .routers.reports import router as reports_router
from .routers.sales import router as sales_router
from .routers.transactions import router as transactions_router

API_PREFIX = "/api/v1"
SERVICE_NAME = "erp-backend"
STARTED_AT_UTC = datetime.now(timezone.utc)


def _current_request_id(req: Request) -> str:
    return getattr(req.state, "request_id", "") or req.headers.get("x-request-id") or "startup"


def _error_response(status_code: int, detail: str, exc: Exception) -> JSONResponse:
    content = {"detail": detail}
    if settings.expose_errors:
        content["error"] = str(exc)
    return JSONResponse(status_code=status_code, content=content)


def _db_health(db: Optional[Database]):
    if db is None:
        return False, "database not configured"
    try:
        db.ping()
        return True, None
    except Exception as exc:
        return False, str(exc)


def create_app(database: Optional[Database] = None) -> FastAPI:
    """
    Build the API. A ready `database` may be passed in (tests do this); the
    app then neither opens nor closes it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = database is None
        db = database or Database.from_settings(settings)
        if owned:
            db.open()
        app.state.db = db
        try:
            db.ping()
            json_log("info", "startup.db_connected", env=settings.env, version=settings.api_version)
        except Exception as exc:
            json_log("warning", "startup.db_probe_failed", env=settings.env, error=str(exc))
        try:
            yield
        finally:
            if owned:
                db.close()
                json_log("info", "shutdown.pool_closed")

    app = FastAPI(title="ERP API", version=settings.api_version, lifespan=lifespan)
    if database is not None:
        app.state.db = database

    # Map common DB constraint/cast errors to 4xx so clients get actionable responses
    # instead of generic 500s.
    @app.exception_handler(pg_errors.InvalidTextRepresentation)
    def _invalid_text_representation(_req: Request, exc: Exception):
        return _error_response(400, "invalid value", exc)

    @app.exception_handler(pg_errors.ForeignKeyViolation)
    def _foreign_key_violation(_req: Request, exc: Exception):
        return _error_response(400, "invalid reference", exc)

    @app.exception_handler(pg_errors.UniqueViolation)
    def _unique_violation(_req: Request, exc: Exception):
        return _error_response(409, "conflict", exc)

    @app.exception_handler(pg_errors.CheckViolation)
    def _check_violation(_req: Request, exc: Exception):
        return _error_response(400, "constraint violation", exc)

    # Stored functions signal business rule failures (e.g. insufficient stock) with RAISE EXCEPTION.
    @app.exception_handler(pg_errors.RaiseException)
    def _raise_exception(_req: Request, exc: Exception):
        detail = exc.diag.message_primary or str(exc).strip() or "operation rejected"
        return JSONResponse(status_code=400, content={"detail": detail})

    @app.exception_handler(RequestValidationError)
    def _request_validation_error(_req: Request, exc: Exception):
        content = {"detail": "validation failed"}
        if settings.expose_errors and hasattr(exc, "errors"):
            content["errors"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(Exception)
    def _unhandled_exception(req: Request, exc: Exception):
        rid = _current_request_id(req)
        json_log(
            "error",
            "http.request.unhandled",
            request_id=rid,
            method=req.method,
            path=req.url.path,
            error=str(exc),
        )
        content = {"detail": "internal error", "request_id": rid}
        if settings.expose_errors:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    # Correlation id + basic structured request logging.
    @app.middleware("http")
    async def _request_logging(request: Request, call_next):
        rid = (request.headers.get("X-Request-Id") or "").strip() or uuid.uuid4().hex
        request.state.request_id = rid
        started = time.time()
        path = request.url.path
        method = request.method
        client_ip = (request.client.host if request.client else None)

        try:
            response = await call_next(request)
        except Exception as exc:
            dur_ms = int((time.time() - started) * 1000)
            json_log(
                "error",
                "http.request.error",
                request_id=rid,
                method=method,
                path=path,
                client_ip=client_ip,
                duration_ms=dur_ms,
                error=str(exc),
            )
            raise

        response.headers["X-Request-Id"] = rid
        response.headers["X-Content-Type-Options"] = "nosniff"
        if not path.startswith("/health"):
            dur_ms = int((time.time() - started) * 1000)
            json_log(
                "info",
                "http.request",
                request_id=rid,
                method=method,
                path=path,
                status_code=response.status_code,
                client_ip=client_ip,
                duration_ms=dur_ms,
            )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in (
        auth_router,
        catalogs_router,
        inventory_router,
        purchasing_router,
        sales_router,
        billing_router,
        accounting_router,
        reports_router,
        transactions_router,
    ):
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/health")
    def health(req: Request):
        request_id = _current_request_id(req)
        ok, err = _db_health(getattr(req.app.state, "db", None))
        content = {
            "status": "ok" if ok else "degraded",
            "env": settings.env,
            "db": "ok" if ok else "down",
            "service": SERVICE_NAME,
            "version": settings.api_version,
            "started_at": STARTED_AT_UTC.isoformat(),
            "request_id": request_id,
        }
        if not ok:
            json_log("warning", "system.health.degraded", request_id=request_id, error=err)
            if settings.expose_errors:
                content["error"] = err
            return JSONResponse(status_code=503, content=content)
        return content

    @app.get("/health/live")
    def health_live(req: Request):
        return {
            "status": "ok",
            "env": settings.env,
            "service": SERVICE_NAME,
            "request_id": _current_request_id(req),
        }

    return app


app = create_app()
