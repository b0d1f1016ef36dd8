"""
Structured JSON Logging
========================
Configures Python's logging to emit JSON-structured log lines suitable
for production log aggregators.

Usage:
    from securohelp.core.logging import init_logging
    init_logging(app)

Each log line contains:
  - timestamp (ISO-8601 UTC)
  - level
  - logger (module name)
  - message
  - request_id / method / path (if emitted while serving a request)

Uses stdlib ``logging`` with a custom ``Formatter``; request context is
carried in a ``ContextVar`` set by an HTTP middleware.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request

from securohelp.core.config import settings

_request_ctx: ContextVar[Optional[dict]] = ContextVar("securohelp_request", default=None)


def current_request_id() -> Optional[str]:
    ctx = _request_ctx.get()
    return ctx["request_id"] if ctx else None


class _JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = _request_ctx.get()
        if ctx:
            payload.update(ctx)

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)


async def _request_logging_middleware(request: Request, call_next):
    """Assign a request_id, log start/end and echo the id back as a header."""
    logger = logging.getLogger("securohelp.http")
    request_id = uuid.uuid4().hex
    token = _request_ctx.set({
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    })
    try:
        logger.info("request_start %s %s", request.method, request.url.path)
        response = await call_next(request)
        logger.info(
            "request_end %s %s status=%d",
            request.method,
            request.url.path,
            response.status_code,
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        _request_ctx.reset(token)


def init_logging(app: FastAPI, *, level: Optional[str] = None) -> None:
    """
    Attach structured logging to the FastAPI application.

    Parameters
    ----------
    app : FastAPI
        The application instance.
    level : str, optional
        Override log level (DEBUG, INFO, WARNING, ERROR).
        Defaults to ``settings.log_level``.
    """
    is_production = settings.app_env == "production"
    level = level or settings.log_level

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicate output
    for handler in root.handlers[:]:
        root.handlers.remove(handler)

    handler = logging.StreamHandler(sys.stdout)
    if is_production:
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root.addHandler(handler)

    app.middleware("http")(_request_logging_middleware)

    logging.getLogger("securohelp").info(
        "Structured logging initialised (level=%s, json=%s)",
        level,
        is_production,
    )
