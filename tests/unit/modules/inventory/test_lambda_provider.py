import pytest

from app.modules.inventory.adapters.aws.lambda_functions import LambdaProvider
from app.shared.core.exceptions import AdapterError


@pytest.fixture
def provider(fake_clients):
    return LambdaProvider(fake_clients)


@pytest.mark.asyncio
async def test_list_functions_follows_markers(provider, aws_client, fake_clients):
    aws_client.list_functions.side_effect = [
        {
            "Functions": [{"FunctionName": "a", "FunctionArn": "arn:a", "Runtime": "python3.12"}],
            "NextMarker": "m1",
        },
        {"Functions": [{"FunctionName": "b", "FunctionArn": "arn:b"}]},
    ]

    functions = await provider.list_functions("production")

    assert [f.function_name for f in functions] == ["a", "b"]
    assert functions[1].version == "$LATEST"
    assert aws_client.list_functions.call_args_list[1].kwargs == {"Marker": "m1"}
    assert fake_clients.requests == [("production", "lambda")]


@pytest.mark.asyncio
async def test_get_function_maps_tags_and_environment(provider, aws_client):
    aws_client.get_function.return_value = {
        "Configuration": {
            "FunctionName": "a",
            "FunctionArn": "arn:a",
            "Environment": {"Variables": {"STAGE": "prod"}},
        },
        "Tags": {"team": "core"},
    }

    function = await provider.get_function("production", "a")

    assert function.environment == {"STAGE": "prod"}
    assert function.tags == {"team": "core"}


@pytest.mark.asyncio
async def test_get_function_without_tags_omits_tag_field(provider, aws_client):
    aws_client.get_function.return_value = {
        "Configuration": {"FunctionName": "a", "FunctionArn": "arn:a"},
        "Tags": {},
    }

    function = await provider.get_function("production", "a")

    assert "tags" not in function.model_dump(by_alias=True, exclude_none=True)


@pytest.mark.asyncio
async def test_missing_function_is_none(provider, aws_client, client_error):
    aws_client.get_function.side_effect = client_error("ResourceNotFoundException", "GetFunction", 404)

    assert await provider.get_function("production", "missing") is None


@pytest.mark.asyncio
async def test_other_errors_become_adapter_errors(provider, aws_client, client_error):
    aws_client.get_function.side_effect = client_error("AccessDeniedException", "GetFunction", 403)

    with pytest.raises(AdapterError) as exc_info:
        await provider.get_function("production", "a")

    assert exc_info.value.status_code == 500
    assert exc_info.value.details["aws_error_code"] == "AccessDeniedException"


@pytest.mark.asyncio
async def test_list_versions(provider, aws_client):
    aws_client.list_versions_by_function.return_value = {
        "Versions": [{"Version": "$LATEST"}, {"Version": "1", "Description": "first"}]
    }

    versions = await provider.list_versions("production", "a")

    assert [v.version for v in versions] == ["$LATEST", "1"]
    aws_client.list_versions_by_function.assert_awaited_once_with(FunctionName="a")


@pytest.mark.asyncio
async def test_function_configuration_has_no_tags(provider, aws_client, client_error):
    aws_client.get_function_configuration.return_value = {
        "FunctionName": "a",
        "FunctionArn": "arn:aws:lambda:eu-west-1:123456789012:function:a",
        "Runtime": "python3.12",
    }

    function = await provider.get_function_configuration("production", "a")

    assert function.runtime == "python3.12"
    assert function.tags is None

    aws_client.get_function_configuration.side_effect = client_error(
        "ResourceNotFoundException"
    )
    assert await provider.get_function_configuration("production", "a") is None
