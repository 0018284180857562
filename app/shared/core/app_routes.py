from typing import Any

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

_REQUIRED_API_PREFIXES = {
    "/accounts",
    "/api/v1/apigateway",
    "/api/v1/docdb",
    "/api/v1/dynamodb",
    "/api/v1/ecr",
    "/api/v1/ecs",
    "/api/v1/efs",
    "/api/v1/lambda",
    "/api/v1/rds",
    "/api/v1/s3",
    "/api/v1/secrets",
    "/api/v1/ssm",
}


def _validate_router_registry(routes: list[tuple[Any, str]]) -> None:
    seen_prefixes: set[str] = set()
    for router, prefix in routes:
        route_list = getattr(router, "routes", None)
        if not isinstance(route_list, list) or not route_list:
            raise RuntimeError("Router registry includes an empty router definition")
        normalized_prefix = prefix.strip()
        if not normalized_prefix.startswith("/"):
            raise RuntimeError(f"Router prefix must start with '/': {prefix!r}")
        if normalized_prefix in seen_prefixes:
            raise RuntimeError(f"Duplicate router prefix registered: {normalized_prefix}")
        seen_prefixes.add(normalized_prefix)

    missing_prefixes = sorted(_REQUIRED_API_PREFIXES - seen_prefixes)
    if missing_prefixes:
        raise RuntimeError(
            "Router registry is missing required API prefixes: "
            + ", ".join(missing_prefixes)
        )

    unexpected_prefixes = sorted(seen_prefixes - _REQUIRED_API_PREFIXES)
    if unexpected_prefixes:
        raise RuntimeError(
            "Router registry includes unexpected API prefixes: "
            + ", ".join(unexpected_prefixes)
        )


def register_lifecycle_routes(
    app: FastAPI,
    *,
    app_name: str,
    version: str,
) -> None:
    """Register lifecycle, health and metrics endpoints."""

    @app.get("/", tags=["Lifecycle"])
    async def root() -> dict[str, str]:
        """Root endpoint for basic reachability."""
        return {"status": "ok", "app": app_name, "version": version}

    @app.get("/health", tags=["Lifecycle"])
    async def health_check() -> dict[str, str]:
        """Liveness check. Never contacts AWS."""
        return {"status": "ok"}

    @app.get("/metrics", tags=["Lifecycle"], include_in_schema=False)
    async def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def register_api_routers(app: FastAPI) -> None:
    """Register API route modules in one place to keep app entrypoint focused."""
    from app.modules.inventory.api.v1.accounts import router as accounts_router
    from app.modules.inventory.api.v1.apigateway import router as apigateway_router
    from app.modules.inventory.api.v1.docdb import router as docdb_router
    from app.modules.inventory.api.v1.dynamodb import router as dynamodb_router
    from app.modules.inventory.api.v1.ecr import router as ecr_router
    from app.modules.inventory.api.v1.ecs import router as ecs_router
    from app.modules.inventory.api.v1.efs import router as efs_router
    from app.modules.inventory.api.v1.lambda_functions import router as lambda_router
    from app.modules.inventory.api.v1.rds import router as rds_router
    from app.modules.inventory.api.v1.s3 import router as s3_router
    from app.modules.inventory.api.v1.secrets_manager import router as secrets_router
    from app.modules.inventory.api.v1.ssm import router as ssm_router

    routes: list[tuple[Any, str]] = [
        (accounts_router, "/accounts"),
        (lambda_router, "/api/v1/lambda"),
        (ecs_router, "/api/v1/ecs"),
        (ssm_router, "/api/v1/ssm"),
        (secrets_router, "/api/v1/secrets"),
        (efs_router, "/api/v1/efs"),
        (rds_router, "/api/v1/rds"),
        (docdb_router, "/api/v1/docdb"),
        (dynamodb_router, "/api/v1/dynamodb"),
        (s3_router, "/api/v1/s3"),
        (apigateway_router, "/api/v1/apigateway"),
        (ecr_router, "/api/v1/ecr"),
    ]

    _validate_router_registry(routes)

    for router, prefix in routes:
        app.include_router(router, prefix=prefix)
