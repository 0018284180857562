from typing import List

from fastapi import APIRouter

from app.modules.inventory.schemas.common import AccountSummary
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["Accounts"])


@router.get("", response_model=List[AccountSummary])
async def list_accounts(service: InventoryServiceDep) -> List[AccountSummary]:
    """Configured accounts. Role ARNs and external IDs are never exposed."""
    return service.list_accounts()
