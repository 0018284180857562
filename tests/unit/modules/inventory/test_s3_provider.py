from datetime import datetime, timezone

import pytest

from app.modules.inventory.adapters.aws.s3 import S3Provider, map_lifecycle_rule
from app.shared.core.exceptions import AdapterError


@pytest.fixture
def configured_bucket(aws_client):
    """A bucket with every facet configured."""
    aws_client.head_bucket.return_value = {}
    aws_client.get_bucket_location.return_value = {"LocationConstraint": "eu-west-1"}
    aws_client.get_bucket_versioning.return_value = {"Status": "Enabled"}
    aws_client.get_bucket_encryption.return_value = {
        "ServerSideEncryptionConfiguration": {
            "Rules": [
                {
                    "ApplyServerSideEncryptionByDefault": {
                        "SSEAlgorithm": "aws:kms",
                        "KMSMasterKeyID": "key-1",
                    }
                }
            ]
        }
    }
    aws_client.get_bucket_lifecycle_configuration.return_value = {
        "Rules": [{"ID": "expire", "Status": "Enabled", "Expiration": {"Days": 30}}]
    }
    aws_client.get_public_access_block.return_value = {
        "PublicAccessBlockConfiguration": {
            "BlockPublicAcls": True,
            "BlockPublicPolicy": True,
            "IgnorePublicAcls": True,
            "RestrictPublicBuckets": True,
        }
    }
    aws_client.get_bucket_policy_status.return_value = {"PolicyStatus": {"IsPublic": False}}
    aws_client.get_bucket_tagging.return_value = {"TagSet": [{"Key": "env", "Value": "prod"}]}
    return aws_client


@pytest.mark.asyncio
async def test_list_buckets_skips_unnamed_entries(fake_clients, aws_client):
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    aws_client.list_buckets.return_value = {
        "Buckets": [{"Name": "logs", "CreationDate": created}, {"CreationDate": created}]
    }

    buckets = await S3Provider(fake_clients).list_buckets("production")

    assert [b.name for b in buckets] == ["logs"]
    assert buckets[0].creation_date == created
    aws_client.get_bucket_location.assert_not_called()


@pytest.mark.asyncio
async def test_get_bucket_applies_all_facets(fake_clients, configured_bucket):
    bucket = await S3Provider(fake_clients).get_bucket("production", "logs")

    assert bucket.region == "eu-west-1"
    assert bucket.versioning_enabled is True
    assert bucket.encryption_enabled and bucket.encryption_type == "aws:kms"
    assert bucket.kms_key_id == "key-1"
    assert [r.id for r in bucket.lifecycle_rules] == ["expire"]
    assert bucket.public_access_blocked is True
    assert bucket.policy_is_public is False
    assert bucket.tags == {"env": "prod"}


@pytest.mark.asyncio
async def test_empty_location_means_us_east_1(fake_clients, configured_bucket):
    configured_bucket.get_bucket_location.return_value = {"LocationConstraint": None}

    bucket = await S3Provider(fake_clients).get_bucket("production", "logs")

    assert bucket.region == "us-east-1"


@pytest.mark.asyncio
async def test_unconfigured_facets_keep_defaults(fake_clients, configured_bucket, client_error):
    configured_bucket.get_bucket_encryption.side_effect = client_error(
        "ServerSideEncryptionConfigurationNotFoundError"
    )
    configured_bucket.get_bucket_lifecycle_configuration.side_effect = client_error(
        "NoSuchLifecycleConfiguration"
    )
    configured_bucket.get_public_access_block.side_effect = client_error(
        "NoSuchPublicAccessBlockConfiguration"
    )
    configured_bucket.get_bucket_policy_status.side_effect = client_error("NoSuchBucketPolicy")
    configured_bucket.get_bucket_tagging.side_effect = client_error("NoSuchTagSet")

    bucket = await S3Provider(fake_clients).get_bucket("production", "logs")

    assert bucket.encryption_enabled is False
    assert bucket.lifecycle_rules == []
    assert bucket.public_access_blocked is False
    assert bucket.tags is None
    # Absent facets do not stop the ones after them.
    assert bucket.versioning_enabled is True
    configured_bucket.get_bucket_tagging.assert_awaited_once()


@pytest.mark.asyncio
async def test_facet_failure_returns_partial_bucket(fake_clients, configured_bucket, client_error):
    configured_bucket.get_bucket_encryption.side_effect = client_error("AccessDenied", status=403)

    bucket = await S3Provider(fake_clients).get_bucket("production", "logs")

    assert bucket.region == "eu-west-1"
    assert bucket.versioning_enabled is True
    assert bucket.encryption_enabled is False
    assert bucket.tags is None
    configured_bucket.get_bucket_tagging.assert_not_called()


@pytest.mark.asyncio
async def test_missing_bucket_is_none(fake_clients, aws_client, client_error):
    aws_client.head_bucket.side_effect = client_error("404", status=404)

    assert await S3Provider(fake_clients).get_bucket("production", "gone") is None
    aws_client.get_bucket_location.assert_not_called()


@pytest.mark.asyncio
async def test_forbidden_head_is_an_adapter_error(fake_clients, aws_client, client_error):
    aws_client.head_bucket.side_effect = client_error("403", status=403)

    with pytest.raises(AdapterError):
        await S3Provider(fake_clients).get_bucket("production", "locked")


@pytest.mark.asyncio
async def test_list_with_details_keeps_creation_date(fake_clients, configured_bucket):
    created = datetime(2024, 5, 1, tzinfo=timezone.utc)
    configured_bucket.list_buckets.return_value = {
        "Buckets": [{"Name": "logs", "CreationDate": created}]
    }

    buckets = await S3Provider(fake_clients).list_buckets_with_details("production")

    assert len(buckets) == 1
    assert buckets[0].creation_date == created
    assert buckets[0].region == "eu-west-1"


@pytest.mark.asyncio
async def test_list_with_details_drops_buckets_that_fail(
    fake_clients, configured_bucket, client_error
):
    configured_bucket.list_buckets.return_value = {
        "Buckets": [{"Name": "logs"}, {"Name": "locked"}, {"Name": "gone"}]
    }

    async def head_bucket(Bucket):
        if Bucket == "locked":
            raise client_error("403", status=403)
        if Bucket == "gone":
            raise client_error("404", status=404)
        return {}

    configured_bucket.head_bucket.side_effect = head_bucket

    buckets = await S3Provider(fake_clients).list_buckets_with_details("production")

    assert [b.name for b in buckets] == ["logs"]


@pytest.mark.asyncio
async def test_list_with_details_drops_buckets_with_a_failed_facet(
    fake_clients, configured_bucket, client_error
):
    configured_bucket.list_buckets.return_value = {
        "Buckets": [{"Name": "logs"}, {"Name": "restricted"}]
    }

    async def get_bucket_versioning(Bucket):
        if Bucket == "restricted":
            raise client_error("AccessDenied", status=403)
        return {"Status": "Enabled"}

    configured_bucket.get_bucket_versioning.side_effect = get_bucket_versioning

    buckets = await S3Provider(fake_clients).list_buckets_with_details("production")

    assert [b.name for b in buckets] == ["logs"]
    assert buckets[0].versioning_enabled is True


@pytest.mark.asyncio
async def test_complete_bucket_required_raises_on_facet_failure(
    fake_clients, configured_bucket, client_error
):
    configured_bucket.get_bucket_versioning.side_effect = client_error(
        "AccessDenied", status=403
    )

    with pytest.raises(AdapterError) as exc_info:
        await S3Provider(fake_clients).get_bucket(
            "production", "logs", require_complete=True
        )

    assert exc_info.value.details == {
        "operation": "s3.versioning",
        "aws_error_code": "AccessDenied",
    }


def test_lifecycle_rule_mapping_merges_filter_tags():
    rule = map_lifecycle_rule(
        {
            "ID": "archive",
            "Status": "Enabled",
            "Filter": {
                "And": {
                    "Prefix": "logs/",
                    "Tags": [{"Key": "tier", "Value": "cold"}],
                }
            },
            "Transitions": [{"Days": 30, "StorageClass": "GLACIER"}],
            "NoncurrentVersionExpiration": {"NoncurrentDays": 7},
            "AbortIncompleteMultipartUpload": {"DaysAfterInitiation": 3},
        }
    )

    assert rule.filter.prefix == "logs/"
    assert rule.filter.tags == {"tier": "cold"}
    assert rule.transitions[0].storage_class == "GLACIER"
    assert rule.noncurrent_version_expiration.noncurrent_days == 7
    assert rule.abort_incomplete_multipart_upload.days_after_initiation == 3
    assert rule.expiration is None


def test_lifecycle_rule_without_status_is_disabled():
    assert map_lifecycle_rule({"ID": "x"}).status == "Disabled"
