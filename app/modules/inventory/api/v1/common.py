from typing import Any, Optional, TypeVar

from fastapi.encoders import jsonable_encoder

from app.shared.core.exceptions import InvalidRequestError, ResourceNotFoundError

T = TypeVar("T")


def require_found(value: Optional[T], message: str) -> T:
    if value is None:
        raise ResourceNotFoundError(message)
    return value


def require_query(value: Optional[str], name: str) -> str:
    if not value:
        raise InvalidRequestError(f"Missing required query parameter: {name}")
    return value


def encode(value: Any) -> Any:
    """Serialize entities the way response models do (camelCase, no nulls)."""
    return jsonable_encoder(value, by_alias=True, exclude_none=True)
