from typing import List, Optional

from fastapi import APIRouter, Query

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.rds import (
    DbParameterGroup,
    RdsCluster,
    RdsInstance,
    RdsSnapshot,
)
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["RDS"])


@router.get(
    "/{account}/instances",
    response_model=List[RdsInstance],
    response_model_exclude_none=True,
)
async def list_instances(account: str, service: InventoryServiceDep) -> List[RdsInstance]:
    return await service.rds.list_instances(account)


@router.get(
    "/{account}/instances/{identifier}",
    response_model=RdsInstance,
    response_model_exclude_none=True,
)
async def get_instance(
    account: str, identifier: str, service: InventoryServiceDep
) -> RdsInstance:
    instance = await service.rds.get_instance(account, identifier)
    return require_found(instance, "Instance not found")


@router.get(
    "/{account}/clusters", response_model=List[RdsCluster], response_model_exclude_none=True
)
async def list_clusters(account: str, service: InventoryServiceDep) -> List[RdsCluster]:
    return await service.rds.list_clusters(account)


@router.get(
    "/{account}/clusters/{identifier}",
    response_model=RdsCluster,
    response_model_exclude_none=True,
)
async def get_cluster(
    account: str, identifier: str, service: InventoryServiceDep
) -> RdsCluster:
    cluster = await service.rds.get_cluster(account, identifier)
    return require_found(cluster, "Cluster not found")


@router.get(
    "/{account}/parameter-groups",
    response_model=List[DbParameterGroup],
    response_model_exclude_none=True,
)
async def list_parameter_groups(
    account: str, service: InventoryServiceDep
) -> List[DbParameterGroup]:
    return await service.rds.list_parameter_groups(account)


@router.get(
    "/{account}/cluster-parameter-groups",
    response_model=List[DbParameterGroup],
    response_model_exclude_none=True,
)
async def list_cluster_parameter_groups(
    account: str, service: InventoryServiceDep
) -> List[DbParameterGroup]:
    return await service.rds.list_cluster_parameter_groups(account)


@router.get(
    "/{account}/snapshots",
    response_model=List[RdsSnapshot],
    response_model_exclude_none=True,
)
async def list_snapshots(
    account: str,
    service: InventoryServiceDep,
    db_instance_identifier: Optional[str] = Query(None, alias="dbInstanceIdentifier"),
) -> List[RdsSnapshot]:
    return await service.rds.list_snapshots(account, db_instance_identifier)


@router.get(
    "/{account}/cluster-snapshots",
    response_model=List[RdsSnapshot],
    response_model_exclude_none=True,
)
async def list_cluster_snapshots(
    account: str,
    service: InventoryServiceDep,
    db_cluster_identifier: Optional[str] = Query(None, alias="dbClusterIdentifier"),
) -> List[RdsSnapshot]:
    return await service.rds.list_cluster_snapshots(account, db_cluster_identifier)
