from typing import Dict, Optional

from app.modules.inventory.schemas.common import InventoryModel


class LambdaFunction(InventoryModel):
    function_name: str
    function_arn: str
    runtime: Optional[str] = None
    handler: Optional[str] = None
    code_size: int = 0
    description: Optional[str] = None
    timeout: Optional[int] = None
    memory_size: Optional[int] = None
    last_modified: Optional[str] = None
    version: str = "$LATEST"
    environment: Optional[Dict[str, str]] = None
    tags: Optional[Dict[str, str]] = None


class LambdaVersion(InventoryModel):
    version: str = "$LATEST"
    description: Optional[str] = None
    last_modified: Optional[str] = None
