"""
Unified Error Governance

Centrally handles exception classification, structured logging,
and OpenTelemetry span recording for every error response.
"""

from typing import Any, Dict, Optional
from uuid import uuid4

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from opentelemetry import trace

from app.shared.core.exceptions import InventoryException
from app.shared.core.ops_metrics import API_ERRORS_TOTAL
from app.shared.core.tracing import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

GENERIC_SERVER_ERROR_MESSAGE = "An error occurred while processing your request"
# Codes whose message may be shown to callers as-is.
SAFE_CODES = {"not_found", "invalid_request", "value_error"}


def handle_exception(
    request: Request, exc: Exception, error_id: Optional[str] = None
) -> JSONResponse:
    """
    Classifies and records exceptions, returning a standardized JSON response.
    Server-side failures never leak vendor or credential detail to the caller.
    """
    error_id = error_id or str(uuid4())

    if isinstance(exc, InventoryException):
        inventory_exc = exc
    elif isinstance(exc, ValueError):
        inventory_exc = InventoryException(
            message=str(exc),
            code="value_error",
            status_code=400,
        )
        logger.warning(
            "business_validation_error",
            error=str(exc),
            error_id=error_id,
            path=request.url.path,
        )
    else:
        inventory_exc = InventoryException(
            message="An unexpected internal error occurred",
            code="internal_error",
            status_code=500,
        )
        logger.exception(
            "unhandled_raw_exception",
            error=str(exc),
            error_id=error_id,
            path=request.url.path,
        )

    with tracer.start_as_current_span("handle_exception") as span:
        span.set_attribute("error.id", error_id)
        span.set_attribute("error.code", inventory_exc.code)
        span.set_attribute("http.path", request.url.path)
        span.set_attribute("http.method", request.method)
        span.record_exception(exc)
        span.set_status(trace.Status(trace.StatusCode.ERROR, inventory_exc.code))

    API_ERRORS_TOTAL.labels(
        path=request.url.path,
        method=request.method,
        status_code=inventory_exc.status_code,
    ).inc()

    log_method = logger.error if inventory_exc.status_code >= 500 else logger.info
    log_method(
        "api_error",
        error_id=error_id,
        code=inventory_exc.code,
        message=inventory_exc.message,
        status_code=inventory_exc.status_code,
        path=request.url.path,
        details=inventory_exc.details,
    )

    message = inventory_exc.message
    response_details: Optional[Dict[str, Any]] = inventory_exc.details or None
    if inventory_exc.status_code >= 500 or inventory_exc.code not in SAFE_CODES:
        message = GENERIC_SERVER_ERROR_MESSAGE
        response_details = None

    return JSONResponse(
        status_code=inventory_exc.status_code,
        content={
            "error": {
                "message": message,
                "code": inventory_exc.code,
                "id": error_id,
                "details": response_details,
            }
        },
    )
