"""
Server-side failures are returned as a generic 500 with no vendor, account
or credential detail.
"""

import pytest
from httpx import AsyncClient

from app.shared.core.error_governance import GENERIC_SERVER_ERROR_MESSAGE


@pytest.mark.asyncio
async def test_vendor_failure_is_sanitized(ac: AsyncClient, aws_client, client_error):
    aws_client.list_functions.side_effect = client_error(
        "AccessDeniedException",
        status=403,
        message="User arn:aws:sts::123456789012:assumed-role/InventoryReadOnly is not authorized",
    )

    response = await ac.get("/api/v1/lambda/production")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["message"] == GENERIC_SERVER_ERROR_MESSAGE
    assert error["details"] is None
    assert "123456789012" not in response.text
    assert "AccessDenied" not in response.text


@pytest.mark.asyncio
async def test_unknown_account_is_a_server_error(registry_ac: AsyncClient):
    response = await registry_ac.get("/api/v1/s3/staging")

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["message"] == GENERIC_SERVER_ERROR_MESSAGE
    assert "staging" not in response.text


@pytest.mark.asyncio
async def test_unexpected_exception_is_sanitized(ac: AsyncClient, aws_client):
    aws_client.list_buckets.side_effect = RuntimeError("secret internals")

    response = await ac.get("/api/v1/s3/production")

    assert response.status_code == 500
    assert "secret internals" not in response.text
    assert response.json()["error"]["message"] == GENERIC_SERVER_ERROR_MESSAGE
