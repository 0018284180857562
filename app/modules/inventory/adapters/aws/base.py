from typing import ClassVar, Optional

from app.shared.adapters.aws_enrichment import DetailEnricher
from app.shared.adapters.aws_utils import AccountClientContext, ResourceClientFactory


class AWSResourceProvider:
    """
    Base class for one resource kind.

    Subclasses name their botocore service and implement read-only list/get
    operations on top of the shared collector and enricher.
    """

    service_name: ClassVar[str]

    def __init__(
        self,
        clients: ResourceClientFactory,
        enricher: Optional[DetailEnricher] = None,
    ):
        self._clients = clients
        self._enricher = enricher or DetailEnricher()

    @property
    def enricher(self) -> DetailEnricher:
        return self._enricher

    def _client(self, account_name: str) -> AccountClientContext:
        return self._clients.client_for(account_name, self.service_name)
