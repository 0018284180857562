from datetime import datetime
from typing import Optional

from app.modules.inventory.schemas.common import InventoryModel

MASKED_VALUE = "********"


class SsmParameter(InventoryModel):
    name: str
    type: str = "String"
    value: str = ""
    version: int = 0
    last_modified_date: Optional[datetime] = None
    arn: Optional[str] = None
    data_type: Optional[str] = None
