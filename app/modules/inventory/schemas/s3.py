from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from app.modules.inventory.schemas.common import InventoryModel


class S3LifecycleFilter(InventoryModel):
    prefix: Optional[str] = None
    tags: Optional[Dict[str, str]] = None


class S3Transition(InventoryModel):
    days: Optional[int] = None
    date: Optional[datetime] = None
    storage_class: str = ""


class S3Expiration(InventoryModel):
    days: Optional[int] = None
    date: Optional[datetime] = None
    expired_object_delete_marker: Optional[bool] = None


class S3NoncurrentTransition(InventoryModel):
    noncurrent_days: Optional[int] = None
    newer_noncurrent_versions: Optional[int] = None
    storage_class: str = ""


class S3NoncurrentExpiration(InventoryModel):
    noncurrent_days: Optional[int] = None
    newer_noncurrent_versions: Optional[int] = None


class S3AbortIncompleteMultipartUpload(InventoryModel):
    days_after_initiation: int = 0


class S3LifecycleRule(InventoryModel):
    id: str = ""
    status: str = "Disabled"
    prefix: Optional[str] = None
    filter: Optional[S3LifecycleFilter] = None
    transitions: List[S3Transition] = Field(default_factory=list)
    expiration: Optional[S3Expiration] = None
    noncurrent_version_transitions: List[S3NoncurrentTransition] = Field(
        default_factory=list
    )
    noncurrent_version_expiration: Optional[S3NoncurrentExpiration] = None
    abort_incomplete_multipart_upload: Optional[S3AbortIncompleteMultipartUpload] = None


class S3Bucket(InventoryModel):
    name: str
    creation_date: Optional[datetime] = None
    region: Optional[str] = None
    versioning_enabled: bool = False
    mfa_delete_enabled: bool = False
    encryption_enabled: bool = False
    encryption_type: Optional[str] = None
    kms_key_id: Optional[str] = None
    lifecycle_rules: List[S3LifecycleRule] = Field(default_factory=list)
    public_access_blocked: bool = False
    policy_is_public: bool = False
    tags: Optional[Dict[str, str]] = None
