from typing import List, Optional

from fastapi import APIRouter, Query

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.docdb import (
    DocumentDbCluster,
    DocumentDbInstance,
    DocumentDbSnapshot,
)
from app.modules.inventory.schemas.rds import DbParameterGroup
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["DocumentDB"])


@router.get(
    "/{account}/clusters",
    response_model=List[DocumentDbCluster],
    response_model_exclude_none=True,
)
async def list_clusters(
    account: str, service: InventoryServiceDep
) -> List[DocumentDbCluster]:
    return await service.docdb.list_clusters(account)


@router.get(
    "/{account}/clusters/{identifier}",
    response_model=DocumentDbCluster,
    response_model_exclude_none=True,
)
async def get_cluster(
    account: str, identifier: str, service: InventoryServiceDep
) -> DocumentDbCluster:
    cluster = await service.docdb.get_cluster(account, identifier)
    return require_found(cluster, "Cluster not found")


@router.get(
    "/{account}/instances",
    response_model=List[DocumentDbInstance],
    response_model_exclude_none=True,
)
async def list_instances(
    account: str, service: InventoryServiceDep
) -> List[DocumentDbInstance]:
    return await service.docdb.list_instances(account)


@router.get(
    "/{account}/instances/{identifier}",
    response_model=DocumentDbInstance,
    response_model_exclude_none=True,
)
async def get_instance(
    account: str, identifier: str, service: InventoryServiceDep
) -> DocumentDbInstance:
    instance = await service.docdb.get_instance(account, identifier)
    return require_found(instance, "Instance not found")


@router.get(
    "/{account}/parameter-groups",
    response_model=List[DbParameterGroup],
    response_model_exclude_none=True,
)
async def list_parameter_groups(
    account: str, service: InventoryServiceDep
) -> List[DbParameterGroup]:
    return await service.docdb.list_parameter_groups(account)


@router.get(
    "/{account}/snapshots",
    response_model=List[DocumentDbSnapshot],
    response_model_exclude_none=True,
)
async def list_snapshots(
    account: str,
    service: InventoryServiceDep,
    db_cluster_identifier: Optional[str] = Query(None, alias="dbClusterIdentifier"),
) -> List[DocumentDbSnapshot]:
    return await service.docdb.list_snapshots(account, db_cluster_identifier)
