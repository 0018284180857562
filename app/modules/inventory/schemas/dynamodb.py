from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class KeySchemaElement(InventoryModel):
    attribute_name: str = ""
    key_type: str = ""


class AttributeDefinition(InventoryModel):
    attribute_name: str = ""
    attribute_type: str = ""


class ProvisionedThroughput(InventoryModel):
    read_capacity_units: int = 0
    write_capacity_units: int = 0


class Projection(InventoryModel):
    projection_type: str = "ALL"
    non_key_attributes: Optional[List[str]] = None


class GlobalSecondaryIndex(InventoryModel):
    index_name: str
    index_arn: Optional[str] = None
    index_status: Optional[str] = None
    key_schema: List[KeySchemaElement] = Field(default_factory=list)
    projection: Projection = Field(default_factory=Projection)
    item_count: int = 0
    index_size_bytes: int = 0
    provisioned_throughput: Optional[ProvisionedThroughput] = None


class LocalSecondaryIndex(InventoryModel):
    index_name: str
    index_arn: Optional[str] = None
    key_schema: List[KeySchemaElement] = Field(default_factory=list)
    projection: Projection = Field(default_factory=Projection)
    item_count: int = 0
    index_size_bytes: int = 0


class DynamoDbTable(InventoryModel):
    table_name: str
    table_arn: str = ""
    table_status: str = ""
    creation_date_time: Optional[datetime] = None
    item_count: int = 0
    table_size_bytes: int = 0
    billing_mode: str = "PROVISIONED"
    provisioned_throughput: Optional[ProvisionedThroughput] = None
    key_schema: List[KeySchemaElement] = Field(default_factory=list)
    attribute_definitions: List[AttributeDefinition] = Field(default_factory=list)
    global_secondary_indexes: List[GlobalSecondaryIndex] = Field(default_factory=list)
    local_secondary_indexes: List[LocalSecondaryIndex] = Field(default_factory=list)
    stream_enabled: bool = False
    stream_view_type: Optional[str] = None
    ttl_enabled: bool = False
    ttl_attribute_name: Optional[str] = None
    pitr_enabled: bool = False
    latest_restorable_date_time: Optional[datetime] = None
    deletion_protection_enabled: bool = False
    table_class: Optional[str] = None
    tags: Optional[Dict[str, str]] = None
