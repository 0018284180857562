from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel
from app.modules.inventory.schemas.rds import DbClusterMember, DbEndpoint

DOCDB_ENGINE = "docdb"


class DocumentDbCluster(InventoryModel):
    db_cluster_identifier: str
    db_cluster_arn: str = ""
    engine: str = DOCDB_ENGINE
    engine_version: str = ""
    status: str = ""
    master_username: Optional[str] = None
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
    members: List[DbClusterMember] = Field(default_factory=list)
    tags: Optional[Dict[str, str]] = None


class DocumentDbInstance(InventoryModel):
    db_instance_identifier: str
    db_instance_arn: str = ""
    db_instance_class: str = ""
    engine: str = DOCDB_ENGINE
    engine_version: str = ""
    db_instance_status: str = ""
    db_cluster_identifier: Optional[str] = None
    availability_zone: Optional[str] = None
    endpoint: Optional[DbEndpoint] = None
    promotion_tier: Optional[int] = None
    publicly_accessible: bool = False
    auto_minor_version_upgrade: bool = False
    instance_create_time: Optional[datetime] = None
    tags: Optional[Dict[str, str]] = None


class DocumentDbSnapshot(InventoryModel):
    snapshot_identifier: str
    snapshot_arn: str = ""
    db_cluster_identifier: str = ""
    snapshot_type: str = ""
    status: str = ""
    snapshot_create_time: Optional[datetime] = None
    engine: str = DOCDB_ENGINE
    engine_version: str = ""
    storage_encrypted: bool = False
