from typing import List

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.lambda_functions import LambdaFunction, LambdaVersion
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["Lambda"])


@router.get(
    "/{account}", response_model=List[LambdaFunction], response_model_exclude_none=True
)
async def list_functions(account: str, service: InventoryServiceDep) -> List[LambdaFunction]:
    return await service.lambda_functions.list_functions(account)


@router.get(
    "/{account}/{function_name}",
    response_model=LambdaFunction,
    response_model_exclude_none=True,
)
async def get_function(
    account: str, function_name: str, service: InventoryServiceDep
) -> LambdaFunction:
    function = await service.lambda_functions.get_function(account, function_name)
    return require_found(function, "Function not found")


@router.get(
    "/{account}/{function_name}/versions",
    response_model=List[LambdaVersion],
    response_model_exclude_none=True,
)
async def list_versions(
    account: str, function_name: str, service: InventoryServiceDep
) -> List[LambdaVersion]:
    return await service.lambda_functions.list_versions(account, function_name)
