from typing import List, Optional

from fastapi import APIRouter, Query

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.efs import (
    EfsAccessPoint,
    EfsFileSystem,
    EfsLifecyclePolicy,
    EfsMountTarget,
)
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["EFS"])


@router.get(
    "/{account}", response_model=List[EfsFileSystem], response_model_exclude_none=True
)
async def list_file_systems(
    account: str, service: InventoryServiceDep
) -> List[EfsFileSystem]:
    return await service.efs.list_file_systems(account)


# Declared before /{file_system_id} so "access-points" is not read as an id.
@router.get(
    "/{account}/access-points",
    response_model=List[EfsAccessPoint],
    response_model_exclude_none=True,
)
async def list_access_points(
    account: str,
    service: InventoryServiceDep,
    file_system_id: Optional[str] = Query(None, alias="fileSystemId"),
) -> List[EfsAccessPoint]:
    return await service.efs.list_access_points(account, file_system_id)


@router.get(
    "/{account}/{file_system_id}",
    response_model=EfsFileSystem,
    response_model_exclude_none=True,
)
async def get_file_system(
    account: str, file_system_id: str, service: InventoryServiceDep
) -> EfsFileSystem:
    file_system = await service.efs.get_file_system(account, file_system_id)
    return require_found(file_system, "File system not found")


@router.get(
    "/{account}/{file_system_id}/mounts",
    response_model=List[EfsMountTarget],
    response_model_exclude_none=True,
)
async def list_mount_targets(
    account: str, file_system_id: str, service: InventoryServiceDep
) -> List[EfsMountTarget]:
    return await service.efs.list_mount_targets(account, file_system_id)


@router.get(
    "/{account}/{file_system_id}/lifecycle",
    response_model=List[EfsLifecyclePolicy],
    response_model_exclude_none=True,
)
async def get_lifecycle_configuration(
    account: str, file_system_id: str, service: InventoryServiceDep
) -> List[EfsLifecyclePolicy]:
    return await service.efs.get_lifecycle_configuration(account, file_system_id)
