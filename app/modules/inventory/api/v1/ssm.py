from typing import List, Optional

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import require_found, require_query
from app.modules.inventory.schemas.ssm import SsmParameter
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["SSM Parameter Store"])


@router.get(
    "/{account}/parameter", response_model=SsmParameter, response_model_exclude_none=True
)
async def get_parameter(
    account: str,
    service: InventoryServiceDep,
    name: Optional[str] = None,
    decrypt: bool = False,
) -> SsmParameter:
    parameter_name = require_query(name, "name")
    parameter = await service.ssm.get_parameter(
        account, parameter_name, with_decryption=decrypt
    )
    return require_found(parameter, "Parameter not found")


@router.get(
    "/{account}/parameters",
    response_model=List[SsmParameter],
    response_model_exclude_none=True,
)
async def get_parameters_by_path(
    account: str,
    service: InventoryServiceDep,
    path: Optional[str] = None,
    recursive: bool = True,
    decrypt: bool = False,
) -> List[SsmParameter]:
    parameter_path = require_query(path, "path")
    return await service.ssm.get_parameters_by_path(
        account, parameter_path, recursive=recursive, with_decryption=decrypt
    )
