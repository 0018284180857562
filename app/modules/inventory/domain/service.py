"""
Inventory domain service.

Wires the account registry, credentials broker, client factory and enricher
into one provider per resource kind. One instance is built per process and
shared by every request.
"""

from datetime import timedelta
from typing import List, Optional

import structlog

from app.modules.inventory.adapters.aws.apigateway import ApiGatewayProvider
from app.modules.inventory.adapters.aws.docdb import DocumentDbProvider
from app.modules.inventory.adapters.aws.dynamodb import DynamoDbProvider
from app.modules.inventory.adapters.aws.ecr import EcrProvider
from app.modules.inventory.adapters.aws.ecs import EcsProvider
from app.modules.inventory.adapters.aws.efs import EfsProvider
from app.modules.inventory.adapters.aws.lambda_functions import LambdaProvider
from app.modules.inventory.adapters.aws.rds import RdsProvider
from app.modules.inventory.adapters.aws.s3 import S3Provider
from app.modules.inventory.adapters.aws.secrets_manager import SecretsManagerProvider
from app.modules.inventory.adapters.aws.ssm import SsmProvider
from app.modules.inventory.schemas.common import AccountSummary
from app.modules.inventory.schemas.ecs import EcsTaskDefinition
from app.shared.adapters.aws_enrichment import DetailEnricher
from app.shared.adapters.aws_multitenant import (
    CredentialsBroker,
    StsClientFactory,
    default_sts_client_factory,
)
from app.shared.adapters.aws_utils import ResourceClientFactory
from app.shared.connections.aws import AccountRegistry
from app.shared.core.config import Settings
from app.shared.core.exceptions import ResourceNotFoundError

logger = structlog.get_logger()


class InventoryService:
    def __init__(
        self,
        registry: AccountRegistry,
        clients: ResourceClientFactory,
        enricher: Optional[DetailEnricher] = None,
    ):
        self.registry = registry
        self.clients = clients
        self.enricher = enricher or DetailEnricher()

        self.lambda_functions = LambdaProvider(clients, self.enricher)
        self.ecs = EcsProvider(clients, self.enricher)
        self.ssm = SsmProvider(clients, self.enricher)
        self.secrets = SecretsManagerProvider(clients, self.enricher)
        self.efs = EfsProvider(clients, self.enricher)
        self.rds = RdsProvider(clients, self.enricher)
        self.docdb = DocumentDbProvider(clients, self.enricher)
        self.dynamodb = DynamoDbProvider(clients, self.enricher)
        self.s3 = S3Provider(clients, self.enricher)
        self.apigateway = ApiGatewayProvider(clients, self.enricher)
        self.ecr = EcrProvider(clients, self.enricher)

    @property
    def broker(self) -> CredentialsBroker:
        return self.clients.broker

    def list_accounts(self) -> List[AccountSummary]:
        """Configured accounts without role ARNs or external IDs."""
        return [
            AccountSummary(
                name=account.name, account_id=account.account_id, region=account.region
            )
            for account in self.registry
        ]

    async def get_service_task_definition(
        self, account_name: str, cluster: str, service_name: str
    ) -> EcsTaskDefinition:
        service = await self.ecs.get_service(account_name, cluster, service_name)
        if service is None:
            raise ResourceNotFoundError("Service not found")
        task_definition = await self.ecs.get_task_definition(
            account_name, service.task_definition
        )
        if task_definition is None:
            raise ResourceNotFoundError("Task definition not found")
        return task_definition


def build_inventory_service(
    settings: Settings,
    *,
    sts_client_factory: Optional[StsClientFactory] = None,
) -> InventoryService:
    registry = AccountRegistry.from_settings(settings)
    broker = CredentialsBroker(
        registry,
        sts_client_factory=sts_client_factory
        or default_sts_client_factory(settings.AWS_ENDPOINT_URL),
        refresh_margin=timedelta(seconds=settings.AWS_CREDENTIAL_REFRESH_MARGIN_SECONDS),
        duration_seconds=settings.AWS_ASSUME_ROLE_DURATION_SECONDS,
        session_prefix=settings.AWS_ROLE_SESSION_PREFIX,
    )
    clients = ResourceClientFactory(broker, endpoint_url=settings.AWS_ENDPOINT_URL)
    service = InventoryService(
        registry, clients, DetailEnricher(batch_size=settings.AWS_ENRICHMENT_BATCH_SIZE)
    )
    logger.info(
        "inventory_service_ready",
        accounts=len(registry),
        batch_size=settings.AWS_ENRICHMENT_BATCH_SIZE,
    )
    return service
