from typing import Any, Dict, List, Optional

import structlog
from botocore.exceptions import ClientError

from app.modules.inventory.adapters.aws.base import AWSResourceProvider
from app.modules.inventory.schemas.common import tags_from_list
from app.modules.inventory.schemas.secrets_manager import SecretMetadata, SecretStructure
from app.shared.adapters.aws_errors import aws_error_codes, aws_operation
from app.shared.adapters.aws_pagination import aws_token_pages, collect_pages

logger = structlog.get_logger()

secret_not_found = aws_error_codes("ResourceNotFoundException")


def map_secret(secret: Dict[str, Any]) -> SecretMetadata:
    """Maps both ListSecrets entries and DescribeSecret responses."""
    return SecretMetadata(
        name=secret.get("Name", ""),
        arn=secret.get("ARN", ""),
        description=secret.get("Description"),
        kms_key_id=secret.get("KmsKeyId"),
        rotation_enabled=secret.get("RotationEnabled", False),
        last_changed_date=secret.get("LastChangedDate"),
        last_accessed_date=secret.get("LastAccessedDate"),
        tags=tags_from_list(secret.get("Tags")),
    )


class SecretsManagerProvider(AWSResourceProvider):
    """Secret metadata only; secret values are never requested."""

    service_name = "secretsmanager"

    @aws_operation("secretsmanager.list_secrets")
    async def list_secrets(self, account_name: str) -> List[SecretMetadata]:
        async with self._client(account_name) as client:
            secrets = await collect_pages(
                aws_token_pages(
                    client.list_secrets,
                    items_key="SecretList",
                    request_token="NextToken",
                    transform=map_secret,
                ),
                operation_name="secretsmanager.list_secrets",
            )
        logger.debug("secrets_listed", account=account_name, count=len(secrets))
        return secrets

    @aws_operation("secretsmanager.describe_secret")
    async def get_secret(
        self, account_name: str, name: str
    ) -> Optional[SecretMetadata]:
        async with self._client(account_name) as client:
            try:
                response = await client.describe_secret(SecretId=name)
            except ClientError as e:
                if secret_not_found(e):
                    return None
                raise
        return map_secret(response)

    async def get_secret_structure(
        self, account_name: str, name: str
    ) -> Optional[SecretStructure]:
        secret = await self.get_secret(account_name, name)
        if secret is None:
            return None
        return SecretStructure(name=secret.name, arn=secret.arn)
