from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.s3 import (
    S3AbortIncompleteMultipartUpload,
    S3Bucket,
    S3Expiration,
    S3LifecycleFilter,
    S3LifecycleRule,
    S3NoncurrentExpiration,
    S3NoncurrentTransition,
    S3Transition,
)
from app.shared.adapters.aws_enrichment import Enrichment
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

# HeadBucket has no body, so a missing bucket surfaces as a bare "404".
bucket_not_found = aws_error_codes("404", "NoSuchBucket", "NotFound")
encryption_not_configured = aws_error_codes(
    "ServerSideEncryptionConfigurationNotFoundError"
)
lifecycle_not_configured = aws_error_codes("NoSuchLifecycleConfiguration")
public_access_block_not_configured = aws_error_codes(
    "NoSuchPublicAccessBlockConfiguration"
)
policy_not_configured = aws_error_codes("NoSuchBucketPolicy")
tags_not_configured = aws_error_codes("NoSuchTagSet")

DEFAULT_BUCKET_REGION = "us-east-1"


def map_bucket(bucket: Dict[str, Any]) -> S3Bucket:
    """Basic listing info; enrichment fields keep their defaults."""
    return S3Bucket(name=bucket.get("Name", ""), creation_date=bucket.get("CreationDate"))


def map_lifecycle_filter(raw: Optional[Dict[str, Any]]) -> Optional[S3LifecycleFilter]:
    if raw is None:
        return None
    and_clause = raw.get("And") or {}
    tag_list = []
    if raw.get("Tag"):
        tag_list.append(raw["Tag"])
    tag_list.extend(and_clause.get("Tags") or [])
    return S3LifecycleFilter(
        prefix=raw.get("Prefix", and_clause.get("Prefix")),
        tags=tags_from_list(tag_list),
    )


def map_lifecycle_rule(rule: Dict[str, Any]) -> S3LifecycleRule:
    expiration = rule.get("Expiration")
    noncurrent_expiration = rule.get("NoncurrentVersionExpiration")
    abort_upload = rule.get("AbortIncompleteMultipartUpload")
    return S3LifecycleRule(
        id=rule.get("ID", ""),
        status=rule.get("Status") or "Disabled",
        prefix=rule.get("Prefix"),
        filter=map_lifecycle_filter(rule.get("Filter")),
        transitions=[
            S3Transition(
                days=t.get("Days"),
                date=t.get("Date"),
                storage_class=t.get("StorageClass", ""),
            )
            for t in rule.get("Transitions") or []
        ],
        expiration=S3Expiration(
            days=expiration.get("Days"),
            date=expiration.get("Date"),
            expired_object_delete_marker=expiration.get("ExpiredObjectDeleteMarker"),
        )
        if expiration
        else None,
        noncurrent_version_transitions=[
            S3NoncurrentTransition(
                noncurrent_days=t.get("NoncurrentDays"),
                newer_noncurrent_versions=t.get("NewerNoncurrentVersions"),
                storage_class=t.get("StorageClass", ""),
            )
            for t in rule.get("NoncurrentVersionTransitions") or []
        ],
        noncurrent_version_expiration=S3NoncurrentExpiration(
            noncurrent_days=noncurrent_expiration.get("NoncurrentDays"),
            newer_noncurrent_versions=noncurrent_expiration.get("NewerNoncurrentVersions"),
        )
        if noncurrent_expiration
        else None,
        abort_incomplete_multipart_upload=S3AbortIncompleteMultipartUpload(
            days_after_initiation=abort_upload.get("DaysAfterInitiation", 0)
        )
        if abort_upload
        else None,
    )


def apply_location(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    return bucket.model_copy(
        update={"region": response.get("LocationConstraint") or DEFAULT_BUCKET_REGION}
    )


def apply_versioning(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    return bucket.model_copy(
        update={
            "versioning_enabled": response.get("Status") == "Enabled",
            "mfa_delete_enabled": response.get("MFADelete") == "Enabled",
        }
    )


def apply_encryption(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    rules = (response.get("ServerSideEncryptionConfiguration") or {}).get("Rules") or []
    if not rules:
        return bucket
    default = rules[0].get("ApplyServerSideEncryptionByDefault") or {}
    return bucket.model_copy(
        update={
            "encryption_enabled": True,
            "encryption_type": default.get("SSEAlgorithm") or "AES256",
            "kms_key_id": default.get("KMSMasterKeyID"),
        }
    )


def apply_lifecycle(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    return bucket.model_copy(
        update={
            "lifecycle_rules": [
                map_lifecycle_rule(r) for r in response.get("Rules") or []
            ]
        }
    )


def apply_public_access_block(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    config = response.get("PublicAccessBlockConfiguration") or {}
    blocked = all(
        config.get(flag) is True
        for flag in (
            "BlockPublicAcls",
            "BlockPublicPolicy",
            "IgnorePublicAcls",
            "RestrictPublicBuckets",
        )
    )
    return bucket.model_copy(update={"public_access_blocked": blocked})


def apply_policy_status(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    is_public = (response.get("PolicyStatus") or {}).get("IsPublic", False)
    return bucket.model_copy(update={"policy_is_public": bool(is_public)})


def apply_tags(bucket: S3Bucket, response: Dict[str, Any]) -> S3Bucket:
    return bucket.model_copy(update={"tags": tags_from_list(response.get("TagSet"))})


def bucket_enrichments(client: Any) -> List[Enrichment[S3Bucket, Any]]:
    """Secondary facets of a bucket, fetched in this order."""
    return [
        Enrichment(
            name="s3.location",
            fetch=lambda b: client.get_bucket_location(Bucket=b.name),
            apply=apply_location,
        ),
        Enrichment(
            name="s3.versioning",
            fetch=lambda b: client.get_bucket_versioning(Bucket=b.name),
            apply=apply_versioning,
        ),
        Enrichment(
            name="s3.encryption",
            fetch=lambda b: client.get_bucket_encryption(Bucket=b.name),
            apply=apply_encryption,
            is_absent=encryption_not_configured,
        ),
        Enrichment(
            name="s3.lifecycle",
            fetch=lambda b: client.get_bucket_lifecycle_configuration(Bucket=b.name),
            apply=apply_lifecycle,
            is_absent=lifecycle_not_configured,
        ),
        Enrichment(
            name="s3.public_access_block",
            fetch=lambda b: client.get_public_access_block(Bucket=b.name),
            apply=apply_public_access_block,
            is_absent=public_access_block_not_configured,
        ),
        Enrichment(
            name="s3.policy_status",
            fetch=lambda b: client.get_bucket_policy_status(Bucket=b.name),
            apply=apply_policy_status,
            is_absent=policy_not_configured,
        ),
        Enrichment(
            name="s3.tags",
            fetch=lambda b: client.get_bucket_tagging(Bucket=b.name),
            apply=apply_tags,
            is_absent=tags_not_configured,
        ),
    ]


class S3Provider(AWSResourceProvider):
    service_name = "s3"

    @aws_operation("s3.list_buckets")
    async def list_buckets(self, account_name: str) -> List[S3Bucket]:
        """Basic bucket info only; use get_bucket for the enriched view."""
        async with self._client(account_name) as client:
            buckets = await collect_pages(
                aws_token_pages(
                    client.list_buckets,
                    items_key="Buckets",
                    request_token="ContinuationToken",
                    transform=map_bucket,
                ),
                operation_name="s3.list_buckets",
            )
        buckets = [b for b in buckets if b.name]
        logger.debug("s3_buckets_listed", account=account_name, count=len(buckets))
        return buckets

    @aws_operation("s3.head_bucket")
    async def get_bucket(
        self, account_name: str, bucket_name: str, *, require_complete: bool = False
    ) -> Optional[S3Bucket]:
        """
        Head the bucket and apply every facet. A facet failure keeps the
        partial bucket unless `require_complete` is set, in which case it
        raises AdapterError naming the failed facet.
        """
        async with self._client(account_name) as client:
            try:
                await client.head_bucket(Bucket=bucket_name)
            except ClientError as e:
                if bucket_not_found(e):
                    return None
                raise
            result = await self.enricher.enrich(
                [S3Bucket(name=bucket_name)],
                bucket_enrichments(client),
                require_complete=require_complete,
            )
        if require_complete:
            result.raise_for_failures()
        return result.items[0]

    async def list_buckets_with_details(
        self, account_name: str, *, batch_size: Optional[int] = None
    ) -> List[S3Bucket]:
        buckets = await self.list_buckets(account_name)
        outcomes = await self.enricher.run_in_batches(
            buckets,
            lambda bucket: self._detailed_bucket(account_name, bucket),
            feature="s3.bucket_details",
            batch_size=batch_size,
        )
        return [o.value for o in outcomes if o.is_value and o.value is not None]

    async def _detailed_bucket(
        self, account_name: str, bucket: S3Bucket
    ) -> Optional[S3Bucket]:
        detailed = await self.get_bucket(
            account_name, bucket.name, require_complete=True
        )
        if detailed is None:
            return None
        return detailed.model_copy(update={"creation_date": bucket.creation_date})
