"""
API fixtures.

The app is driven in-process through httpx's ASGI transport. The lifespan is
not run; the inventory service is injected through a dependency override.
"""

from unittest.mock import MagicMock

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import app
from app.modules.inventory.domain.service import InventoryService
from app.shared.adapters.aws_multitenant import CredentialsBroker
from app.shared.adapters.aws_utils import ResourceClientFactory
from app.shared.core.dependencies import get_inventory_service


async def _client_for(service: InventoryService):
    app.dependency_overrides[get_inventory_service] = lambda: service
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_inventory_service, None)


@pytest_asyncio.fixture
async def ac(registry, fake_clients):
    """Client whose AWS calls all land on the shared `aws_client` mock."""
    async for client in _client_for(InventoryService(registry, fake_clients)):
        yield client


@pytest_asyncio.fixture
async def registry_ac(registry):
    """Client backed by the real client factory; STS must never be reached."""
    sts_factory = MagicMock(side_effect=AssertionError("STS contacted"))
    broker = CredentialsBroker(registry, sts_client_factory=sts_factory)
    service = InventoryService(registry, ResourceClientFactory(broker))
    async for client in _client_for(service):
        yield client
