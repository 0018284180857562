from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class SecretMetadata(InventoryModel):
    name: str
    arn: str
    description: Optional[str] = None
    kms_key_id: Optional[str] = None
    rotation_enabled: bool = False
    last_changed_date: Optional[datetime] = None
    last_accessed_date: Optional[datetime] = None
    tags: Optional[Dict[str, str]] = None


class SecretStructure(InventoryModel):
    """Shape of a secret without its value; keys are never read from AWS."""

    name: str
    arn: str
    keys: List[str] = Field(default_factory=list)
    has_value: bool = True
