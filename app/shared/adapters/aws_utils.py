from types import TracebackType
from typing import Any, Callable, Dict, Optional, Type

from aiobotocore.credentials import AioCredentialResolver
from aiobotocore.session import AioSession, get_session
from botocore.config import Config as BotoConfig

from app.shared.adapters.aws_multitenant import BrokerCredentialProvider, CredentialsBroker
from app.shared.core.credentials import AWSAccount

# Standardized boto config with timeouts to prevent indefinite hangs.
# Adaptive mode is the SDK's own client-side throttling; the inventory core
# adds no retry layer of its own.
DEFAULT_BOTO_CONFIG = BotoConfig(
    read_timeout=30, connect_timeout=10, retries={"max_attempts": 3, "mode": "adaptive"}
)

SessionFactory = Callable[[], AioSession]


class AccountClientContext:
    """
    Async context manager yielding an aiobotocore client for one account.

    The client never receives static keys. Its session carries refreshable
    credentials that call back into the broker whenever the current lease
    is inside the refresh margin, including mid-way through an open block.
    """

    def __init__(
        self,
        factory: "ResourceClientFactory",
        account: AWSAccount,
        service_name: str,
        config: BotoConfig,
    ):
        self._factory = factory
        self.account = account
        self.service_name = service_name
        self._config = config
        self._client_context: Any = None

    async def __aenter__(self) -> Any:
        kwargs: Dict[str, Any] = {
            "region_name": self.account.region,
            "config": self._config,
        }
        if self._factory.endpoint_url:
            kwargs["endpoint_url"] = self._factory.endpoint_url
        session = self._factory.session_for(self.account)
        self._client_context = session.create_client(self.service_name, **kwargs)
        return await self._client_context.__aenter__()

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> Any:
        context, self._client_context = self._client_context, None
        if context is None:
            return None
        return await context.__aexit__(exc_type, exc, tb)


class ResourceClientFactory:
    """Builds per-account, per-service AWS clients bound to the account region."""

    def __init__(
        self,
        broker: CredentialsBroker,
        *,
        session_factory: SessionFactory = get_session,
        config: BotoConfig = DEFAULT_BOTO_CONFIG,
        endpoint_url: Optional[str] = None,
    ):
        self.broker = broker
        self.config = config
        self.endpoint_url = endpoint_url
        self._session_factory = session_factory
        self._sessions: Dict[str, AioSession] = {}

    def session_for(self, account: AWSAccount) -> AioSession:
        """
        One session per account, created on first use. Its credential chain is
        replaced by the broker so botocore loads and refreshes through STS.
        """
        session = self._sessions.get(account.name)
        if session is None:
            session = self._session_factory()
            session.register_component(
                "credential_provider",
                AioCredentialResolver([BrokerCredentialProvider(self.broker, account.name)]),
            )
            self._sessions[account.name] = session
        return session

    def client_for(
        self,
        account_name: str,
        service_name: str,
        *,
        config: Optional[BotoConfig] = None,
    ) -> AccountClientContext:
        """
        Raises UnknownAccountError immediately; STS is only contacted when the
        returned client first needs credentials.
        """
        account = self.broker.registry.get(account_name)
        client_config = self.config.merge(config) if config is not None else self.config
        return AccountClientContext(self, account, service_name, client_config)
