from datetime import datetime
from typing import Dict, List, Optional

from app.modules.inventory.schemas.common import InventoryModel


class EcsCluster(InventoryModel):
    cluster_arn: str
    cluster_name: str


class EcsDeployment(InventoryModel):
    id: str
    status: str = "UNKNOWN"
    task_definition: str = ""
    desired_count: int = 0
    running_count: int = 0
    pending_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    rollout_state: Optional[str] = None


class EcsService(InventoryModel):
    service_name: str
    service_arn: str
    cluster_arn: str = ""
    status: str = "UNKNOWN"
    desired_count: int = 0
    running_count: int = 0
    pending_count: int = 0
    task_definition: str = ""
    launch_type: Optional[str] = None
    platform_version: Optional[str] = None
    deployments: Optional[List[EcsDeployment]] = None


class EcsPortMapping(InventoryModel):
    container_port: int = 0
    host_port: Optional[int] = None
    protocol: str = "tcp"


class EcsContainer(InventoryModel):
    name: str
    image: str = ""
    cpu: Optional[int] = None
    memory: Optional[int] = None
    memory_reservation: Optional[int] = None
    essential: bool = True
    port_mappings: Optional[List[EcsPortMapping]] = None
    environment: Optional[Dict[str, str]] = None


class EcsTaskDefinition(InventoryModel):
    task_definition_arn: str
    family: str = ""
    revision: int = 0
    status: str = "UNKNOWN"
    cpu: Optional[str] = None
    memory: Optional[str] = None
    network_mode: Optional[str] = None
    containers: List[EcsContainer] = []
