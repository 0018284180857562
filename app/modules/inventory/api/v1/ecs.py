from typing import List

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.ecs import EcsCluster, EcsService, EcsTaskDefinition
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["ECS"])


@router.get(
    "/{account}/clusters", response_model=List[EcsCluster], response_model_exclude_none=True
)
async def list_clusters(account: str, service: InventoryServiceDep) -> List[EcsCluster]:
    return await service.ecs.list_clusters(account)


@router.get("/{account}/{cluster}/services", response_model=List[str])
async def list_services(
    account: str, cluster: str, service: InventoryServiceDep
) -> List[str]:
    """Service names of a cluster."""
    return await service.ecs.list_services(account, cluster)


@router.get(
    "/{account}/{cluster}/{service_name}",
    response_model=EcsService,
    response_model_exclude_none=True,
)
async def get_service(
    account: str, cluster: str, service_name: str, service: InventoryServiceDep
) -> EcsService:
    ecs_service = await service.ecs.get_service(account, cluster, service_name)
    return require_found(ecs_service, "Service not found")


@router.get(
    "/{account}/{cluster}/{service_name}/task-definition",
    response_model=EcsTaskDefinition,
    response_model_exclude_none=True,
)
async def get_service_task_definition(
    account: str, cluster: str, service_name: str, service: InventoryServiceDep
) -> EcsTaskDefinition:
    return await service.get_service_task_definition(account, cluster, service_name)
