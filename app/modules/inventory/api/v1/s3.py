from typing import List

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.s3 import S3Bucket
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["S3"])


@router.get("/{account}", response_model=List[S3Bucket], response_model_exclude_none=True)
async def list_buckets(
    account: str, service: InventoryServiceDep, details: bool = False
) -> List[S3Bucket]:
    if details:
        return await service.s3.list_buckets_with_details(account)
    return await service.s3.list_buckets(account)


@router.get(
    "/{account}/{bucket_name}", response_model=S3Bucket, response_model_exclude_none=True
)
async def get_bucket(
    account: str, bucket_name: str, service: InventoryServiceDep
) -> S3Bucket:
    bucket = await service.s3.get_bucket(account, bucket_name)
    return require_found(bucket, "Bucket not found")
