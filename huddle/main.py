"""Huddle API - Main FastAPI Application."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from huddle.api.deps import build_services
from huddle.api.routes import health, messages, users
from huddle.core.config import settings
from huddle.core.exceptions import HuddleException, sanitize_error
from huddle.middleware.performance import RequestIDMiddleware, RequestTimingMiddleware


def _configure_logging() -> None:
    """Set up logging based on LOG_FORMAT.

    json: Structured JSON via python-json-logger (for production log capture).
    text: Human-readable format (for local development).
    """
    log_format = os.environ.get("LOG_FORMAT", settings.LOG_FORMAT).lower()
    log_level = os.environ.get("LOG_LEVEL", settings.LOG_LEVEL).upper()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Remove existing handlers to avoid duplicate output
    root_logger.handlers.clear()

    handler = logging.StreamHandler()

    if log_format == "json":
        from pythonjsonlogger.json import JsonFormatter

        formatter = JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "service",
            },
            static_fields={"app": "huddle-api"},
        )
        handler.setFormatter(formatter)
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


_configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Build the service graph and warm the identity cache before serving.

    A failed warm-up aborts startup.
    """
    logger.info("Starting Huddle API...")

    if getattr(app.state, "services", None) is None:
        from huddle.core.llm import LLMClient
        from huddle.db.supabase import SupabaseStore

        app.state.services = build_services(
            store=SupabaseStore(),
            llm=LLMClient(),
            default_lookback_days=settings.DEFAULT_LOOKBACK_DAYS,
        )

    services = app.state.services
    try:
        count = await services.cache.warm(services.store)
    except Exception:
        logger.critical("Identity cache warm-up failed; refusing to start", exc_info=True)
        raise
    logger.info("Identity cache ready with %d entries", count)

    yield

    logger.info("Shutting down Huddle API...")


app = FastAPI(
    title="Huddle API",
    description="Share highlights with your circle and ask how everyone is doing",
    version="1.0.0",
    lifespan=lifespan,
)

CORS_ORIGINS = settings.cors_origins_list
logger.info("CORS allowed origins: %s", CORS_ORIGINS)

# In Starlette, last-added = outermost, so add timing first, then ID.
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(RequestIDMiddleware)

# CORS Configuration — added last so it's outermost (handles preflight first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(messages.router)
app.include_router(users.router)


@app.get("/", tags=["system"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "Huddle API",
        "version": "1.0.0",
        "description": "Highlight sharing and digests for small private groups",
    }


def _error_response(status_code: int, message: str, details: dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "details": details})


@app.exception_handler(HuddleException)
async def huddle_exception_handler(request: Request, exc: HuddleException) -> JSONResponse:
    """Render domain errors as ``{message, details}``.

    Server-side failures get a generic message; their cause stays in the logs.
    """
    request_id = getattr(request.state, "request_id", None)
    if exc.status_code >= 500:
        logger.error(
            "Request failed: %s",
            exc.message,
            extra={"code": exc.code, "request_id": request_id, "path": request.url.path},
        )
        return _error_response(
            exc.status_code,
            sanitize_error(exc),
            {"code": exc.code, "request_id": request_id},
        )

    logger.warning(
        "Request rejected: %s",
        exc.message,
        extra={"code": exc.code, "request_id": request_id, "path": request.url.path},
    )
    return _error_response(
        exc.status_code,
        exc.message,
        {"code": exc.code, "request_id": request_id, **exc.details},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body or query parsing failures are bad input (400)."""
    logger.warning(
        "Request validation error on %s %s: %d error(s)",
        request.method,
        request.url.path,
        len(exc.errors()),
    )
    return _error_response(
        400,
        "Request validation error",
        {"code": "INVALID_INPUT", "errors": jsonable_errors(exc.errors())},
    )


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Model validation failures outside request parsing."""
    logger.warning("Validation error on %s %s", request.method, request.url.path)
    return _error_response(
        400,
        "Validation error",
        {"code": "INVALID_INPUT", "errors": jsonable_errors(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unhandled is a 500 with the traceback logged."""
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={"request_id": request_id, "path": request.url.path},
    )
    return _error_response(
        500,
        "An internal server error occurred",
        {"code": "INTERNAL_ERROR", "request_id": request_id},
    )


def jsonable_errors(errors: Any) -> list[dict[str, Any]]:
    """Drop non-serializable context (e.g. exception objects) from pydantic errors."""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in errors
    ]
