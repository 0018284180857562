"""
AWS error classification.

Vendor error codes are stringly typed and differ per service and feature, so
callers build predicates from the codes that apply at their call site and
hand them to the enricher or check them inline for entity-level not-found.
"""

from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar, cast

import structlog
from botocore.exceptions import BotoCoreError, ClientError

from app.shared.core.exceptions import AdapterError, InventoryException

logger = structlog.get_logger()

ErrorClassifier = Callable[[BaseException], bool]

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def aws_error_code(exc: BaseException) -> Optional[str]:
    """Return the AWS error code carried by a ClientError, if any."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    return None


def aws_http_status(exc: BaseException) -> Optional[int]:
    if isinstance(exc, ClientError):
        return exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return None


def aws_error_codes(*codes: str) -> ErrorClassifier:
    """Build a predicate matching ClientErrors with any of the given codes."""
    accepted = frozenset(codes)

    def _matches(exc: BaseException) -> bool:
        return aws_error_code(exc) in accepted

    return _matches


def any_of(*classifiers: ErrorClassifier) -> ErrorClassifier:
    def _matches(exc: BaseException) -> bool:
        return any(classifier(exc) for classifier in classifiers)

    return _matches


def never(_exc: BaseException) -> bool:
    return False


def aws_operation(operation: str) -> Callable[[F], F]:
    """
    Translate uncaught botocore errors from a primary list/describe call into
    AdapterError. Inventory exceptions (UnknownAccountError, AssumeRoleError)
    pass through unchanged.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except InventoryException:
                raise
            except ClientError as e:
                error_code = aws_error_code(e) or "Unknown"
                logger.error(
                    "aws_operation_failed",
                    operation=operation,
                    error_code=error_code,
                    error=str(e),
                )
                raise AdapterError(
                    f"AWS {operation} failed: {error_code}",
                    details={"operation": operation, "aws_error_code": error_code},
                ) from e
            except BotoCoreError as e:
                logger.error(
                    "aws_operation_failed",
                    operation=operation,
                    error_code=type(e).__name__,
                    error=str(e),
                )
                raise AdapterError(
                    f"AWS {operation} failed: {type(e).__name__}",
                    details={"operation": operation, "aws_error_code": type(e).__name__},
                ) from e

        return cast(F, wrapper)

    return decorator
