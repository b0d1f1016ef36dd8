"""SecuroHelp case service: FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from securohelp import __version__
from securohelp.api.routes import case_statuses_router, cases_router, dashboard_router
from securohelp.core.config import settings
from securohelp.core.database import engine
from securohelp.core.errors import SecuroHelpError
from securohelp.core.logging import init_logging

logger = logging.getLogger(__name__)


def _run_migrations() -> None:
    """Apply pending Alembic migrations on startup."""
    from alembic import command
    from alembic.config import Config as AlembicConfig

    cfg = AlembicConfig("alembic.ini")
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, "head")
    logger.info("Alembic migrations applied.")


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Startup / shutdown lifecycle hook."""
    if settings.run_migrations_on_startup:
        _run_migrations()
    yield
    engine.dispose()


app = FastAPI(title="SecuroHelp", version=__version__, lifespan=lifespan)

init_logging(app)

# ── CORS ─────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error responses ──────────────────────────────────────────────────


def _error_body(message: str, details=None) -> dict:
    body = {"success": False, "error": message}
    if details is not None:
        body["details"] = details
    return body


@app.exception_handler(SecuroHelpError)
async def securohelp_error_handler(request: Request, exc: SecuroHelpError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=_error_body("Nieprawidłowe dane", details),
    )


# ── Routers ──────────────────────────────────────────────────────────
app.include_router(case_statuses_router, prefix=settings.api_prefix)
app.include_router(cases_router, prefix=settings.api_prefix)
app.include_router(dashboard_router, prefix=settings.api_prefix)


@app.get("/health")
def health():
    """Health check with database status."""
    result = {
        "status": "healthy",
        "version": __version__,
        "database": "disconnected",
    }
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        result["database"] = "connected"
    except SQLAlchemyError as exc:
        logger.warning("Database health check failed: %s", exc)
        result["status"] = "degraded"
    return result
