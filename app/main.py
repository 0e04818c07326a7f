"""
main.py — Brand Command Center API

Mounts the admin, sync, cron and portal routers, wires logging, structured
error responses, request IDs, and the background scheduler.

Called by: uvicorn (app.main:app)
Depends on: config, logging_config, startup, scheduler, routers/*
"""

import os
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .logging_config import setup_logging
from .schemas.errors import ErrorResponse

setup_logging()

from .connector_status import log_connector_status  # noqa: E402
from .http_client import close_clients  # noqa: E402
from .routers import clients, integrations, portal, sync  # noqa: E402
from .scheduler import configure_scheduler, scheduler  # noqa: E402
from .startup import run_startup_migrations  # noqa: E402

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    run_startup_migrations()
    log_connector_status()
    testing = bool(os.environ.get("TESTING"))
    if not testing:
        configure_scheduler()
        scheduler.start()
    logger.info("Brand Command Center started", version=APP_VERSION, app_url=settings.app_url)
    yield
    if scheduler.running:
        scheduler.shutdown(wait=False)
    await close_clients()


app = FastAPI(title="Brand Command Center", version=APP_VERSION, lifespan=lifespan)


# ── Middleware ──────────────────────────────────────────────────────────


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    request.state.request_id = request_id
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ── Error handlers ──────────────────────────────────────────────────────


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        message = str(exc.detail.get("message", ""))
        detail = exc.detail.get("errors")
    else:
        message, detail = str(exc.detail), None
    body = ErrorResponse(
        error=message,
        status_code=exc.status_code,
        request_id=_request_id(request),
        detail=detail,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    body = ErrorResponse(
        error="Validation error",
        status_code=422,
        request_id=_request_id(request),
        detail=jsonable_encoder(exc.errors()),
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# ── Routes ──────────────────────────────────────────────────────────────


app.include_router(clients.router)
app.include_router(integrations.router)
app.include_router(sync.router)
app.include_router(portal.router)


@app.get("/health")
def health():
    return {"status": "ok", "version": APP_VERSION}
