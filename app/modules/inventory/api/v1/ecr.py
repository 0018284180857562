from typing import List, Optional

from fastapi import APIRouter, Query

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.ecr import (
    EcrImage,
    EcrLifecyclePolicy,
    EcrRepository,
    EcrRepositoryPolicy,
    EcrScanSummary,
)
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["ECR"])


@router.get(
    "/{account}", response_model=List[EcrRepository], response_model_exclude_none=True
)
async def list_repositories(
    account: str, service: InventoryServiceDep
) -> List[EcrRepository]:
    return await service.ecr.list_repositories(account)


@router.get(
    "/{account}/{repository_name}",
    response_model=EcrRepository,
    response_model_exclude_none=True,
)
async def get_repository(
    account: str, repository_name: str, service: InventoryServiceDep
) -> EcrRepository:
    repository = await service.ecr.get_repository(account, repository_name)
    return require_found(repository, "Repository not found")


@router.get(
    "/{account}/{repository_name}/images",
    response_model=List[EcrImage],
    response_model_exclude_none=True,
)
async def list_images(
    account: str,
    repository_name: str,
    service: InventoryServiceDep,
    max_results: Optional[int] = Query(None, alias="maxResults", ge=1),
) -> List[EcrImage]:
    return await service.ecr.list_images(account, repository_name, max_results)


@router.get(
    "/{account}/{repository_name}/scan/{image_digest}",
    response_model=EcrScanSummary,
    response_model_exclude_none=True,
)
async def get_image_scan_findings(
    account: str,
    repository_name: str,
    image_digest: str,
    service: InventoryServiceDep,
    image_tag: Optional[str] = Query(None, alias="imageTag"),
) -> EcrScanSummary:
    findings = await service.ecr.get_image_scan_findings(
        account, repository_name, image_digest, image_tag
    )
    return require_found(findings, "Scan findings not found")


@router.get(
    "/{account}/{repository_name}/lifecycle-policy",
    response_model=EcrLifecyclePolicy,
    response_model_exclude_none=True,
)
async def get_lifecycle_policy(
    account: str, repository_name: str, service: InventoryServiceDep
) -> EcrLifecyclePolicy:
    policy = await service.ecr.get_lifecycle_policy(account, repository_name)
    return require_found(policy, "Lifecycle policy not found")


@router.get(
    "/{account}/{repository_name}/policy",
    response_model=EcrRepositoryPolicy,
    response_model_exclude_none=True,
)
async def get_repository_policy(
    account: str, repository_name: str, service: InventoryServiceDep
) -> EcrRepositoryPolicy:
    policy = await service.ecr.get_repository_policy(account, repository_name)
    return require_found(policy, "Repository policy not found")
