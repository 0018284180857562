import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from botocore.exceptions import EndpointConnectionError

from app.shared.adapters.aws_multitenant import CredentialsBroker, build_session_name
from app.shared.core.exceptions import AssumeRoleError, UnknownAccountError


def _sts_response(expiration, key="ASIAEXAMPLE"):
    return {
        "Credentials": {
            "AccessKeyId": key,
            "SecretAccessKey": "secret",
            "SessionToken": "token",
            "Expiration": expiration,
        }
    }


@pytest.fixture
def sts():
    return AsyncMock()


@pytest.fixture
def broker(registry, clock, sts, client_context):
    return CredentialsBroker(
        registry,
        sts_client_factory=lambda account: client_context(sts),
        clock=clock,
    )


@pytest.mark.asyncio
async def test_resolve_assumes_role_with_account_parameters(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(hours=1))

    lease = await broker.resolve("production")

    assert lease.access_key_id == "ASIAEXAMPLE"
    assert lease.secret_access_key.get_secret_value() == "secret"
    _, kwargs = sts.assume_role.call_args
    assert kwargs["RoleArn"] == "arn:aws:iam::123456789012:role/InventoryReadOnly"
    assert kwargs["ExternalId"] == "ext-123"
    assert kwargs["DurationSeconds"] == 3600
    assert kwargs["RoleSessionName"].startswith("aws-inventory-production-")


@pytest.mark.asyncio
async def test_external_id_omitted_when_not_configured(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(hours=1))

    await broker.resolve("development")

    _, kwargs = sts.assume_role.call_args
    assert "ExternalId" not in kwargs


@pytest.mark.asyncio
async def test_fresh_lease_is_served_from_cache(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(hours=1))

    first = await broker.resolve("production")
    clock.advance(minutes=30)
    second = await broker.resolve("production")

    assert first is second
    assert sts.assume_role.await_count == 1


@pytest.mark.asyncio
async def test_lease_inside_refresh_margin_is_renewed_once(broker, sts, clock):
    sts.assume_role.side_effect = [
        _sts_response(clock.now + timedelta(hours=1), key="ASIAFIRST"),
        _sts_response(clock.now + timedelta(hours=2), key="ASIASECOND"),
    ]

    await broker.resolve("production")
    # 30 seconds before expiry is inside the 60 second margin.
    clock.advance(minutes=59, seconds=30)
    renewed = await broker.resolve("production")
    again = await broker.resolve("production")

    assert renewed.access_key_id == "ASIASECOND"
    assert again is renewed
    assert sts.assume_role.await_count == 2


@pytest.mark.asyncio
async def test_accounts_are_cached_independently(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(hours=1))

    await broker.resolve("production")
    await broker.resolve("development")
    await broker.resolve("production")

    assert sts.assume_role.await_count == 2


@pytest.mark.asyncio
async def test_unknown_account_never_contacts_sts(broker, sts):
    with pytest.raises(UnknownAccountError) as exc_info:
        await broker.resolve("staging")

    assert exc_info.value.account_name == "staging"
    assert "Unknown AWS account: staging" in str(exc_info.value)
    sts.assume_role.assert_not_called()


@pytest.mark.asyncio
async def test_sts_client_error_becomes_assume_role_error(broker, sts, client_error):
    sts.assume_role.side_effect = client_error("AccessDenied", "AssumeRole", 403)

    with pytest.raises(AssumeRoleError) as exc_info:
        await broker.resolve("production")

    assert exc_info.value.details["aws_error_code"] == "AccessDenied"
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_sts_transport_error_becomes_assume_role_error(broker, sts):
    sts.assume_role.side_effect = EndpointConnectionError(endpoint_url="https://sts")

    with pytest.raises(AssumeRoleError):
        await broker.resolve("production")


@pytest.mark.asyncio
async def test_response_without_credentials_fails(broker, sts):
    sts.assume_role.return_value = {"Credentials": None}

    with pytest.raises(AssumeRoleError):
        await broker.resolve("production")


@pytest.mark.asyncio
async def test_response_missing_secret_fails(broker, sts, clock):
    sts.assume_role.return_value = {
        "Credentials": {
            "AccessKeyId": "ASIAEXAMPLE",
            "Expiration": clock.now + timedelta(hours=1),
        }
    }

    with pytest.raises(AssumeRoleError):
        await broker.resolve("production")


@pytest.mark.asyncio
async def test_already_expiring_credentials_are_rejected(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(seconds=30))

    with pytest.raises(AssumeRoleError, match="already expiring"):
        await broker.resolve("production")


@pytest.mark.asyncio
async def test_failed_exchange_is_retried_on_next_resolve(
    broker, sts, clock, client_error
):
    sts.assume_role.side_effect = [
        client_error("Throttling", "AssumeRole"),
        _sts_response(clock.now + timedelta(hours=1)),
    ]

    with pytest.raises(AssumeRoleError):
        await broker.resolve("production")
    lease = await broker.resolve("production")

    assert lease.access_key_id == "ASIAEXAMPLE"
    assert sts.assume_role.await_count == 2


@pytest.mark.asyncio
async def test_missing_expiration_falls_back_to_requested_duration(broker, sts, clock):
    sts.assume_role.return_value = {
        "Credentials": {
            "AccessKeyId": "ASIAEXAMPLE",
            "SecretAccessKey": "secret",
            "SessionToken": "token",
        }
    }

    lease = await broker.resolve("production")

    assert lease.expires_at == clock.now + timedelta(seconds=3600)


@pytest.mark.asyncio
async def test_naive_expiration_is_treated_as_utc(broker, sts, clock):
    naive = (clock.now + timedelta(hours=1)).replace(tzinfo=None)
    sts.assume_role.return_value = _sts_response(naive)

    lease = await broker.resolve("production")

    assert lease.expires_at.tzinfo == timezone.utc


@pytest.mark.asyncio
async def test_invalidate_forces_a_fresh_exchange(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(hours=1))

    await broker.resolve("production")
    broker.invalidate("production")
    await broker.resolve("production")

    assert sts.assume_role.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_resolves_all_receive_fresh_leases(broker, sts, clock):
    sts.assume_role.return_value = _sts_response(clock.now + timedelta(hours=1))

    leases = await asyncio.gather(*(broker.resolve("production") for _ in range(5)))

    assert all(lease.is_fresh(clock.now, timedelta(seconds=60)) for lease in leases)


def test_session_name_is_sanitized_and_bounded():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    name = build_session_name("aws-inventory", "prod account/" + "x" * 80, now)

    assert len(name) <= 64
    assert " " not in name and "/" not in name
    assert name.endswith(f"-{int(now.timestamp() * 1000)}")
