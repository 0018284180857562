from typing import List

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import require_found
from app.modules.inventory.schemas.secrets_manager import SecretMetadata, SecretStructure
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["Secrets Manager"])


@router.get(
    "/{account}", response_model=List[SecretMetadata], response_model_exclude_none=True
)
async def list_secrets(account: str, service: InventoryServiceDep) -> List[SecretMetadata]:
    return await service.secrets.list_secrets(account)


@router.get(
    "/{account}/{secret_name}",
    response_model=SecretMetadata,
    response_model_exclude_none=True,
)
async def get_secret(
    account: str, secret_name: str, service: InventoryServiceDep
) -> SecretMetadata:
    secret = await service.secrets.get_secret(account, secret_name)
    return require_found(secret, "Secret not found")


@router.get(
    "/{account}/{secret_name}/structure",
    response_model=SecretStructure,
    response_model_exclude_none=True,
)
async def get_secret_structure(
    account: str, secret_name: str, service: InventoryServiceDep
) -> SecretStructure:
    structure = await service.secrets.get_secret_structure(account, secret_name)
    return require_found(structure, "Secret not found")
