from typing import Any

from fastapi import APIRouter

from app.modules.inventory.api.v1.common import encode, require_found
from app.modules.inventory.schemas.dynamodb import DynamoDbTable
from app.shared.core.dependencies import InventoryServiceDep

router = APIRouter(tags=["DynamoDB"])


@router.get("/{account}/tables")
async def list_tables(
    account: str, service: InventoryServiceDep, details: bool = False
) -> Any:
    """Table names, or fully described tables when `details=true`."""
    if details:
        return encode(await service.dynamodb.list_tables_with_details(account))
    return await service.dynamodb.list_tables(account)


@router.get(
    "/{account}/tables/{table_name}",
    response_model=DynamoDbTable,
    response_model_exclude_none=True,
)
async def get_table(
    account: str, table_name: str, service: InventoryServiceDep
) -> DynamoDbTable:
    table = await service.dynamodb.get_table(account, table_name)
    return require_found(table, "Table not found")
