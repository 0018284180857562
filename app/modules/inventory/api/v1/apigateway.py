from typing import List

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.apigateway import (
    HttpApi,
    HttpApiRoute,
    HttpApiStage,
    RestApi,
    RestApiDeployment,
    RestApiResource,
    RestApiStage,
)
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["API Gateway"])


@router.get(
    "/{account}/rest-apis", response_model=List[RestApi], response_model_exclude_none=True
)
async def list_rest_apis(account: str, service: InventoryServiceDep) -> List[RestApi]:
    return await service.apigateway.list_rest_apis(account)


@router.get(
    "/{account}/rest-apis/{api_id}",
    response_model=RestApi,
    response_model_exclude_none=True,
)
async def get_rest_api(account: str, api_id: str, service: InventoryServiceDep) -> RestApi:
    api = await service.apigateway.get_rest_api(account, api_id)
    return require_found(api, "REST API not found")


@router.get(
    "/{account}/rest-apis/{api_id}/stages",
    response_model=List[RestApiStage],
    response_model_exclude_none=True,
)
async def get_rest_api_stages(
    account: str, api_id: str, service: InventoryServiceDep
) -> List[RestApiStage]:
    return await service.apigateway.get_rest_api_stages(account, api_id)


@router.get(
    "/{account}/rest-apis/{api_id}/resources",
    response_model=List[RestApiResource],
    response_model_exclude_none=True,
)
async def get_rest_api_resources(
    account: str, api_id: str, service: InventoryServiceDep
) -> List[RestApiResource]:
    return await service.apigateway.get_rest_api_resources(account, api_id)


@router.get(
    "/{account}/rest-apis/{api_id}/deployments",
    response_model=List[RestApiDeployment],
    response_model_exclude_none=True,
)
async def get_rest_api_deployments(
    account: str, api_id: str, service: InventoryServiceDep
) -> List[RestApiDeployment]:
    return await service.apigateway.get_rest_api_deployments(account, api_id)


@router.get(
    "/{account}/http-apis", response_model=List[HttpApi], response_model_exclude_none=True
)
async def list_http_apis(account: str, service: InventoryServiceDep) -> List[HttpApi]:
    return await service.apigateway.list_http_apis(account)


@router.get(
    "/{account}/http-apis/{api_id}",
    response_model=HttpApi,
    response_model_exclude_none=True,
)
async def get_http_api(account: str, api_id: str, service: InventoryServiceDep) -> HttpApi:
    api = await service.apigateway.get_http_api(account, api_id)
    return require_found(api, "HTTP API not found")


@router.get(
    "/{account}/http-apis/{api_id}/stages",
    response_model=List[HttpApiStage],
    response_model_exclude_none=True,
)
async def get_http_api_stages(
    account: str, api_id: str, service: InventoryServiceDep
) -> List[HttpApiStage]:
    return await service.apigateway.get_http_api_stages(account, api_id)


@router.get(
    "/{account}/http-apis/{api_id}/routes",
    response_model=List[HttpApiRoute],
    response_model_exclude_none=True,
)
async def get_http_api_routes(
    account: str, api_id: str, service: InventoryServiceDep
) -> List[HttpApiRoute]:
    return await service.apigateway.get_http_api_routes(account, api_id)
