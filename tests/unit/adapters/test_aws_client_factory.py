from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiobotocore.session import get_session
from botocore.config import Config as BotoConfig

from app.shared.adapters.aws_multitenant import (
    BrokerCredentialProvider,
    CredentialsBroker,
)
from app.shared.adapters.aws_utils import DEFAULT_BOTO_CONFIG, ResourceClientFactory
from app.shared.core.exceptions import AssumeRoleError, UnknownAccountError


def _sts_response(key, expiration):
    return {
        "Credentials": {
            "AccessKeyId": key,
            "SecretAccessKey": f"{key}-secret",
            "SessionToken": f"{key}-token",
            "Expiration": expiration,
        }
    }


@pytest.fixture
def broker(registry):
    broker = MagicMock(spec=CredentialsBroker)
    broker.registry = registry
    broker.resolve = AsyncMock()
    return broker


@pytest.fixture
def session(client_context):
    session = MagicMock()
    session.created = []

    def create_client(service_name, **kwargs):
        client = AsyncMock()
        session.created.append((service_name, kwargs, client))
        return client_context(client)

    session.create_client.side_effect = create_client
    return session


@pytest.fixture
def sts():
    return AsyncMock()


@pytest.fixture
def live_broker(registry, clock, sts, client_context):
    return CredentialsBroker(
        registry,
        sts_client_factory=lambda account: client_context(sts),
        clock=clock,
    )


def test_unknown_account_raises_before_any_credential_work(broker, session):
    factory = ResourceClientFactory(broker, session_factory=lambda: session)

    with pytest.raises(UnknownAccountError):
        factory.client_for("staging", "lambda")

    broker.resolve.assert_not_called()
    session.create_client.assert_not_called()


@pytest.mark.asyncio
async def test_client_is_bound_to_account_region_without_static_keys(broker, session):
    factory = ResourceClientFactory(broker, session_factory=lambda: session)

    async with factory.client_for("production", "lambda") as client:
        pass

    service_name, kwargs, created = session.created[0]
    assert client is created
    assert service_name == "lambda"
    assert kwargs["region_name"] == "eu-west-1"
    assert kwargs["config"] is DEFAULT_BOTO_CONFIG
    assert "endpoint_url" not in kwargs
    assert "aws_access_key_id" not in kwargs
    assert "aws_secret_access_key" not in kwargs
    assert "aws_session_token" not in kwargs


@pytest.mark.asyncio
async def test_session_credentials_come_from_the_broker(broker, session):
    factory = ResourceClientFactory(broker, session_factory=lambda: session)

    async with factory.client_for("production", "s3"):
        pass

    name, resolver = session.register_component.call_args.args
    assert name == "credential_provider"
    assert len(resolver.providers) == 1
    assert isinstance(resolver.providers[0], BrokerCredentialProvider)


@pytest.mark.asyncio
async def test_one_session_per_account(broker):
    sessions = []

    def session_factory():
        sessions.append(MagicMock())
        return sessions[-1]

    factory = ResourceClientFactory(broker, session_factory=session_factory)

    async with factory.client_for("production", "s3"):
        pass
    async with factory.client_for("production", "ecs"):
        pass
    async with factory.client_for("development", "s3"):
        pass

    assert len(sessions) == 2
    assert factory.session_for(factory.broker.registry.get("production")) is sessions[0]


@pytest.mark.asyncio
async def test_endpoint_override_and_config_merge(broker, session):
    factory = ResourceClientFactory(
        broker, session_factory=lambda: session, endpoint_url="http://localhost:4566"
    )

    async with factory.client_for(
        "development", "dynamodb", config=BotoConfig(read_timeout=5)
    ):
        pass

    _, kwargs, _ = session.created[0]
    assert kwargs["endpoint_url"] == "http://localhost:4566"
    assert kwargs["region_name"] == "us-east-1"
    assert kwargs["config"].read_timeout == 5
    assert kwargs["config"].connect_timeout == 10


@pytest.mark.asyncio
async def test_open_client_re_signs_after_lease_expiry(live_broker, sts, clock):
    sts.assume_role.side_effect = [
        _sts_response("ASIAFIRST", clock.now + timedelta(hours=1)),
        _sts_response("ASIASECOND", clock.now + timedelta(hours=3)),
    ]
    factory = ResourceClientFactory(live_broker, session_factory=get_session)

    async with factory.client_for("production", "s3") as client:
        credentials = client._request_signer._credentials
        first = await credentials.get_frozen_credentials()
        clock.advance(hours=2)
        second = await credentials.get_frozen_credentials()

    assert first.access_key == "ASIAFIRST"
    assert second.access_key == "ASIASECOND"
    assert second.secret_key == "ASIASECOND-secret"
    assert second.token == "ASIASECOND-token"
    assert sts.assume_role.await_count == 2


@pytest.mark.asyncio
async def test_open_client_keeps_fresh_lease(live_broker, sts, clock):
    sts.assume_role.return_value = _sts_response("ASIAFIRST", clock.now + timedelta(hours=1))
    factory = ResourceClientFactory(live_broker, session_factory=get_session)

    async with factory.client_for("production", "s3") as client:
        credentials = client._request_signer._credentials
        clock.advance(minutes=30)
        frozen = await credentials.get_frozen_credentials()

    assert frozen.access_key == "ASIAFIRST"
    sts.assume_role.assert_awaited_once()


@pytest.mark.asyncio
async def test_assume_role_failure_surfaces_on_enter(live_broker, sts, client_error):
    sts.assume_role.side_effect = client_error("AccessDenied", "AssumeRole", 403)
    factory = ResourceClientFactory(live_broker, session_factory=get_session)

    with pytest.raises(AssumeRoleError):
        async with factory.client_for("production", "ecs"):
            pass
