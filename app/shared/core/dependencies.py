from typing import Annotated

from fastapi import Depends, Request

from app.modules.inventory.domain.service import InventoryService, build_inventory_service
from app.shared.core.config import get_settings


def get_inventory_service(request: Request) -> InventoryService:
    """
    Returns the process-wide InventoryService built during lifespan startup.
    Falls back to building it on first use when the lifespan did not run.
    """
    service = getattr(request.app.state, "inventory_service", None)
    if service is None:
        service = build_inventory_service(get_settings())
        request.app.state.inventory_service = service
    return service


InventoryServiceDep = Annotated[InventoryService, Depends(get_inventory_service)]
