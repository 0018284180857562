from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class EcrRepository(InventoryModel):
    repository_name: str
    repository_arn: str = ""
    repository_uri: str = ""
    registry_id: str = ""
    created_at: Optional[datetime] = None
    image_tag_mutability: str = "MUTABLE"
    scan_on_push: bool = False
    encryption_type: Optional[str] = None
    kms_key: Optional[str] = None
    tags: Optional[Dict[str, str]] = None


class EcrImage(InventoryModel):
    repository_name: str
    image_digest: str = ""
    image_tags: List[str] = Field(default_factory=list)
    image_size_in_bytes: int = 0
    image_pushed_at: Optional[datetime] = None
    image_manifest_media_type: Optional[str] = None
    last_recorded_pull_time: Optional[datetime] = None
    artifact_media_type: Optional[str] = None


class EcrScanFinding(InventoryModel):
    name: str = ""
    description: Optional[str] = None
    severity: str = "UNDEFINED"
    uri: Optional[str] = None


class EcrScanSummary(InventoryModel):
    image_digest: str
    image_tags: List[str] = Field(default_factory=list)
    scan_completed_at: Optional[datetime] = None
    vulnerability_source_updated_at: Optional[datetime] = None
    finding_severity_counts: Dict[str, int] = Field(default_factory=dict)
    findings: List[EcrScanFinding] = Field(default_factory=list)


class EcrLifecyclePolicy(InventoryModel):
    repository_name: str
    registry_id: str = ""
    policy_text: str = ""
    last_evaluated_at: Optional[datetime] = None


class EcrRepositoryPolicy(InventoryModel):
    repository_name: str
    registry_id: str = ""
    policy_text: str = ""
