"""
Global pytest fixtures for the inventory test suite.

Provides:
- Test environment defaults (set before any app import)
- A registry of two test accounts
- A controllable clock for credential expiry
- A fake client factory yielding one AsyncMock client
- A ClientError builder
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest
from botocore.exceptions import ClientError

# Set test environment BEFORE any app imports
os.environ["TESTING"] = "true"
os.environ.pop("AWS_ACCOUNTS", None)
os.environ.pop("AWS_ACCOUNTS_FILE", None)

from app.shared.connections.aws import AccountRegistry  # noqa: E402
from app.shared.core.credentials import AWSAccount  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class StaticClientContext:
    def __init__(self, client: Any):
        self.client = client

    async def __aenter__(self) -> Any:
        return self.client

    async def __aexit__(self, *exc_info: Any) -> None:
        return None


class FakeClientFactory:
    """Stands in for ResourceClientFactory; every service gets the same client."""

    def __init__(self, client: Any):
        self.client = client
        self.requests: List[Tuple[str, str]] = []

    def client_for(
        self, account_name: str, service_name: str, *, config: Optional[Any] = None
    ) -> StaticClientContext:
        self.requests.append((account_name, service_name))
        return StaticClientContext(self.client)


def build_client_error(
    code: str, operation: str = "Operation", status: int = 400, message: str = ""
) -> ClientError:
    response: Dict[str, Any] = {
        "Error": {"Code": code, "Message": message or code},
        "ResponseMetadata": {"HTTPStatusCode": status},
    }
    return ClientError(response, operation)


@pytest.fixture
def client_error():
    return build_client_error


@pytest.fixture
def prod_account() -> AWSAccount:
    return AWSAccount(
        name="production",
        account_id="123456789012",
        region="eu-west-1",
        role_arn="arn:aws:iam::123456789012:role/InventoryReadOnly",
        external_id="ext-123",
    )


@pytest.fixture
def dev_account() -> AWSAccount:
    return AWSAccount(
        name="development",
        account_id="210987654321",
        role_arn="arn:aws:iam::210987654321:role/InventoryReadOnly",
    )


@pytest.fixture
def registry(prod_account: AWSAccount, dev_account: AWSAccount) -> AccountRegistry:
    return AccountRegistry([prod_account, dev_account])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def aws_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def fake_clients(aws_client: AsyncMock) -> FakeClientFactory:
    return FakeClientFactory(aws_client)


@pytest.fixture
def client_context():
    """Wraps an object in an async context manager, like aiobotocore clients."""
    return StaticClientContext
