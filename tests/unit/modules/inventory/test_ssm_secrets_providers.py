import pytest

from app.modules.inventory.adapters.aws.secrets_manager import SecretsManagerProvider
from app.modules.inventory.adapters.aws.ssm import SsmProvider
from app.modules.inventory.schemas.ssm import MASKED_VALUE


@pytest.mark.asyncio
async def test_secure_string_is_masked_without_decryption(fake_clients, aws_client):
    aws_client.get_parameter.return_value = {
        "Parameter": {"Name": "/db/password", "Type": "SecureString", "Value": "cipher", "Version": 2}
    }

    parameter = await SsmProvider(fake_clients).get_parameter("production", "/db/password")

    assert parameter.value == MASKED_VALUE
    aws_client.get_parameter.assert_awaited_once_with(Name="/db/password", WithDecryption=False)


@pytest.mark.asyncio
async def test_secure_string_is_returned_when_decrypted(fake_clients, aws_client):
    aws_client.get_parameter.return_value = {
        "Parameter": {"Name": "/db/password", "Type": "SecureString", "Value": "plain"}
    }

    parameter = await SsmProvider(fake_clients).get_parameter(
        "production", "/db/password", with_decryption=True
    )

    assert parameter.value == "plain"


@pytest.mark.asyncio
async def test_missing_parameter_is_none(fake_clients, aws_client, client_error):
    aws_client.get_parameter.side_effect = client_error("ParameterNotFound")

    assert await SsmProvider(fake_clients).get_parameter("production", "/nope") is None


@pytest.mark.asyncio
async def test_parameters_by_path_pages_and_masks(fake_clients, aws_client):
    aws_client.get_parameters_by_path.side_effect = [
        {"Parameters": [{"Name": "/app/a", "Type": "String", "Value": "1"}], "NextToken": "t"},
        {"Parameters": [{"Name": "/app/b", "Type": "SecureString", "Value": "x"}]},
    ]

    parameters = await SsmProvider(fake_clients).get_parameters_by_path("production", "/app")

    assert [(p.name, p.value) for p in parameters] == [("/app/a", "1"), ("/app/b", MASKED_VALUE)]
    first_call = aws_client.get_parameters_by_path.call_args_list[0].kwargs
    assert first_call == {"Path": "/app", "Recursive": True, "WithDecryption": False}


@pytest.mark.asyncio
async def test_secret_structure_never_reads_the_value(fake_clients, aws_client):
    aws_client.describe_secret.return_value = {"Name": "db", "ARN": "arn:secret:db"}

    structure = await SecretsManagerProvider(fake_clients).get_secret_structure("production", "db")

    assert structure.keys == []
    assert structure.has_value is True
    aws_client.get_secret_value.assert_not_called()


@pytest.mark.asyncio
async def test_missing_secret_is_none(fake_clients, aws_client, client_error):
    aws_client.describe_secret.side_effect = client_error("ResourceNotFoundException")
    provider = SecretsManagerProvider(fake_clients)

    assert await provider.get_secret("production", "db") is None
    assert await provider.get_secret_structure("production", "db") is None


@pytest.mark.asyncio
async def test_list_secrets_normalizes_tags(fake_clients, aws_client):
    aws_client.list_secrets.return_value = {
        "SecretList": [
            {"Name": "a", "ARN": "arn:a", "Tags": [{"Key": "team", "Value": "core"}]},
            {"Name": "b", "ARN": "arn:b", "Tags": []},
        ]
    }

    secrets = await SecretsManagerProvider(fake_clients).list_secrets("production")

    assert secrets[0].tags == {"team": "core"}
    assert secrets[1].tags is None
