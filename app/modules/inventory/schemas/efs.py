from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class EfsFileSystem(InventoryModel):
    file_system_id: str
    file_system_arn: str = ""
    name: Optional[str] = None
    creation_time: Optional[datetime] = None
    life_cycle_state: str = "unknown"
    number_of_mount_targets: int = 0
    size_in_bytes: int = 0
    performance_mode: str = "generalPurpose"
    throughput_mode: str = "bursting"
    provisioned_throughput_in_mibps: Optional[float] = None
    encrypted: bool = False
    kms_key_id: Optional[str] = None
    tags: Optional[Dict[str, str]] = None


class EfsMountTarget(InventoryModel):
    mount_target_id: str
    file_system_id: str = ""
    subnet_id: str = ""
    life_cycle_state: str = "unknown"
    ip_address: Optional[str] = None
    network_interface_id: Optional[str] = None
    availability_zone_id: Optional[str] = None
    availability_zone_name: Optional[str] = None
    vpc_id: Optional[str] = None


class EfsLifecyclePolicy(InventoryModel):
    transition_to_ia: Optional[str] = Field(default=None, alias="transitionToIA")
    transition_to_primary_storage_class: Optional[str] = None
    transition_to_archive: Optional[str] = None


class EfsCreationInfo(InventoryModel):
    owner_uid: int = 0
    owner_gid: int = 0
    permissions: str = "0755"


class EfsRootDirectory(InventoryModel):
    path: Optional[str] = None
    creation_info: Optional[EfsCreationInfo] = None


class EfsPosixUser(InventoryModel):
    uid: int = 0
    gid: int = 0
    secondary_gids: Optional[List[int]] = None


class EfsAccessPoint(InventoryModel):
    access_point_id: str
    access_point_arn: str = ""
    file_system_id: str = ""
    name: Optional[str] = None
    life_cycle_state: str = "unknown"
    root_directory: Optional[EfsRootDirectory] = None
    posix_user: Optional[EfsPosixUser] = None
    tags: Optional[Dict[str, str]] = None
