import pytest
from fastapi import APIRouter

from app.shared.core.app_routes import _REQUIRED_API_PREFIXES, _validate_router_registry


def _router() -> APIRouter:
    router = APIRouter()

    @router.get("/ping")
    async def ping() -> dict:
        return {}

    return router


def _full_registry() -> list:
    return [(_router(), prefix) for prefix in sorted(_REQUIRED_API_PREFIXES)]


def test_full_registry_is_valid():
    _validate_router_registry(_full_registry())


def test_empty_router_is_rejected():
    routes = _full_registry()
    routes[0] = (APIRouter(), routes[0][1])

    with pytest.raises(RuntimeError, match="empty router"):
        _validate_router_registry(routes)


def test_duplicate_prefix_is_rejected():
    routes = _full_registry() + [(_router(), "/api/v1/s3")]

    with pytest.raises(RuntimeError, match="Duplicate router prefix"):
        _validate_router_registry(routes)


def test_missing_prefix_is_rejected():
    routes = [r for r in _full_registry() if r[1] != "/api/v1/ecr"]

    with pytest.raises(RuntimeError, match="/api/v1/ecr"):
        _validate_router_registry(routes)


def test_prefix_without_slash_is_rejected():
    routes = _full_registry() + [(_router(), "api/v1/ec2")]

    with pytest.raises(RuntimeError, match="must start with"):
        _validate_router_registry(routes)


def test_unexpected_prefix_is_rejected():
    routes = _full_registry() + [(_router(), "/api/v1/ec2")]

    with pytest.raises(RuntimeError, match="unexpected API prefixes"):
        _validate_router_registry(routes)
