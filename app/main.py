import json
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Sequence
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.modules.inventory.domain.service import build_inventory_service
from app.shared.core.app_routes import register_api_routers, register_lifecycle_routes
from app.shared.core.config import get_settings, reload_settings_from_environment
from app.shared.core.error_governance import GENERIC_SERVER_ERROR_MESSAGE, handle_exception
from app.shared.core.exceptions import InventoryException
from app.shared.core.logging import setup_logging
from app.shared.core.middleware import RequestIDMiddleware
from app.shared.core.ops_metrics import API_ERRORS_TOTAL
from app.shared.core.tracing import setup_tracing

setup_logging()
settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    global settings
    settings = reload_settings_from_environment()

    logger.info("app_starting", app_name=settings.APP_NAME)
    # Account or settings errors surface here and abort startup.
    app.state.inventory_service = build_inventory_service(settings)

    yield

    logger.info("app_stopping", app_name=settings.APP_NAME)
    app.state.inventory_service = None


# Application instance
inventory_app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)
app: FastAPI = inventory_app

__all__ = ["app", "inventory_app", "lifespan"]

# Initialize Tracing
setup_tracing()


@inventory_app.exception_handler(InventoryException)
async def inventory_exception_handler(
    request: Request, exc: InventoryException
) -> JSONResponse:
    """Handle custom application exceptions."""
    return handle_exception(request, exc)


@inventory_app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle routing and HTTP errors with the standard error envelope."""
    if exc.status_code >= 500:
        message_text = GENERIC_SERVER_ERROR_MESSAGE
    else:
        message_text = str(exc.detail) if isinstance(exc.detail, str) else "Request failed"

    API_ERRORS_TOTAL.labels(
        path=request.url.path, method=request.method, status_code=exc.status_code
    ).inc()
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": message_text,
                "code": "http_error",
                "id": str(uuid4()),
                "details": None,
            }
        },
        headers=getattr(exc, "headers", None),
    )


@inventory_app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors of path and query parameters."""

    def _json_safe(value: Any) -> Any:
        if isinstance(value, Exception):
            return str(value)
        try:
            json.dumps(value)
            return value
        except (TypeError, ValueError):
            return str(value)

    def _sanitize_errors(errors: Sequence[Any]) -> List[Dict[str, Any]]:
        sanitized = []
        for err in errors:
            clean = dict(err)
            if "ctx" in clean and isinstance(clean["ctx"], dict):
                clean["ctx"] = {k: _json_safe(v) for k, v in clean["ctx"].items()}
            if "input" in clean:
                clean["input"] = _json_safe(clean["input"])
            sanitized.append(clean)
        return sanitized

    API_ERRORS_TOTAL.labels(
        path=request.url.path, method=request.method, status_code=422
    ).inc()
    return JSONResponse(
        status_code=422,
        content={
            "error": {
                "message": "The request parameters are invalid.",
                "code": "validation_error",
                "id": str(uuid4()),
                "details": _sanitize_errors(exc.errors()),
            }
        },
    )


@inventory_app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle business logic ValueErrors via central governance."""
    return handle_exception(request, exc)


@inventory_app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unhandled exceptions via central error governance.
    Ensures OTel trace correlation and sanitized responses.
    """
    return handle_exception(request, exc)


# Keep app entrypoint lean by registering lifecycle/health routes in a focused module.
register_lifecycle_routes(
    inventory_app,
    app_name=settings.APP_NAME,
    version=settings.VERSION,
)

# Middleware is processed in REVERSE order of addition.
inventory_app.add_middleware(RequestIDMiddleware)

# CORS - added LAST so it processes FIRST
inventory_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
)

# Register API routers in a dedicated registry module for maintainability.
register_api_routers(inventory_app)
