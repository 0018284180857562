from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class DbEndpoint(InventoryModel):
    address: str = ""
    port: int = 0
    hosted_zone_id: Optional[str] = None


class DbClusterMember(InventoryModel):
    db_instance_identifier: str = ""
    is_cluster_writer: bool = False


class ServerlessV2Scaling(InventoryModel):
    min_capacity: Optional[float] = None
    max_capacity: Optional[float] = None


class RdsInstance(InventoryModel):
    db_instance_identifier: str
    db_instance_arn: str = ""
    db_instance_class: str = ""
    engine: str = ""
    engine_version: str = ""
    db_instance_status: str = ""
    master_username: Optional[str] = None
    allocated_storage: int = 0
    availability_zone: Optional[str] = None
    multi_az: bool = Field(default=False, alias="multiAZ")
    endpoint: Optional[DbEndpoint] = None
    storage_type: str = "gp2"
    storage_encrypted: bool = False
    kms_key_id: Optional[str] = None
    publicly_accessible: bool = False
    auto_minor_version_upgrade: bool = False
    db_parameter_group_name: Optional[str] = None
    vpc_security_groups: List[str] = Field(default_factory=list)
    db_subnet_group_name: Optional[str] = None
    backup_retention_period: int = 0
    preferred_backup_window: Optional[str] = None
    preferred_maintenance_window: Optional[str] = None
    latest_restorable_time: Optional[datetime] = None
    instance_create_time: Optional[datetime] = None
    tags: Optional[Dict[str, str]] = None


class RdsCluster(InventoryModel):
    db_cluster_identifier: str
    db_cluster_arn: str = ""
    engine: str = ""
    engine_version: str = ""
    engine_mode: Optional[str] = None
    status: str = ""
    master_username: Optional[str] = None
    allocated_storage: Optional[int] = None
    endpoint: Optional[str] = None
    reader_endpoint: Optional[str] = None
    port: Optional[int] = None
    multi_az: bool = Field(default=False, alias="multiAZ")
    storage_encrypted: bool = False
    kms_key_id: Optional[str] = None
    db_subnet_group: Optional[str] = None
    vpc_security_groups: List[str] = Field(default_factory=list)
    backup_retention_period: int = 0
    preferred_backup_window: Optional[str] = None
    preferred_maintenance_window: Optional[str] = None
    latest_restorable_time: Optional[datetime] = None
    cluster_create_time: Optional[datetime] = None
    deletion_protection: bool = False
    serverless_v2_scaling_configuration: Optional[ServerlessV2Scaling] = None
    members: List[DbClusterMember] = Field(default_factory=list)
    tags: Optional[Dict[str, str]] = None


class DbParameterGroup(InventoryModel):
    name: str
    arn: str = ""
    family: str = ""
    description: Optional[str] = None


class RdsSnapshot(InventoryModel):
    snapshot_identifier: str
    snapshot_arn: str = ""
    db_identifier: str = ""
    snapshot_type: str = ""
    status: str = ""
    snapshot_create_time: Optional[datetime] = None
    allocated_storage: int = 0
    engine: str = ""
    engine_version: str = ""
    encrypted: bool = False
