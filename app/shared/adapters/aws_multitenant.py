"""
Cross-account credential broker (Native Async)

Uses STS AssumeRole to obtain temporary credentials for every configured
account and caches one lease per account until it is close to expiry.
Leverages aiobotocore for non-blocking I/O.
"""

import re
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import structlog
from aiobotocore.credentials import AioRefreshableCredentials
from botocore.config import Config as BotoConfig
from botocore.credentials import CredentialProvider
from botocore.exceptions import BotoCoreError, ClientError

from app.shared.adapters.aws_errors import aws_error_code
from app.shared.connections.aws import AccountRegistry
from app.shared.core.credentials import AWSAccount, CredentialLease
from app.shared.core.exceptions import AssumeRoleError
from app.shared.core.ops_metrics import (
    CREDENTIAL_CACHE_HITS_TOTAL,
    STS_ASSUME_ROLE_TOTAL,
)

logger = structlog.get_logger()

STS_CONFIG = BotoConfig(
    read_timeout=10,
    connect_timeout=5,
    retries={"max_attempts": 2, "mode": "standard"},
)

DEFAULT_REFRESH_MARGIN = timedelta(seconds=60)
DEFAULT_SESSION_DURATION_SECONDS = 3600
DEFAULT_SESSION_PREFIX = "aws-inventory"

# RoleSessionName: 2-64 chars of [\w+=,.@-]
_SESSION_NAME_INVALID = re.compile(r"[^\w+=,.@-]")
_SESSION_NAME_MAX = 64

Clock = Callable[[], datetime]
StsClientFactory = Callable[[AWSAccount], AbstractAsyncContextManager[Any]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_session_name(prefix: str, account_name: str, now: datetime) -> str:
    """
    Session names carry the account and a millisecond timestamp so concurrent
    processes assuming the same role stay distinguishable in CloudTrail.
    """
    suffix = f"-{int(now.timestamp() * 1000)}"
    head = _SESSION_NAME_INVALID.sub("-", f"{prefix}-{account_name}")
    return head[: _SESSION_NAME_MAX - len(suffix)] + suffix


def default_sts_client_factory(
    endpoint_url: Optional[str] = None,
) -> StsClientFactory:
    """STS clients use the host's own credential chain and the account region."""
    from aiobotocore.session import get_session

    session = get_session()

    def _factory(account: AWSAccount) -> AbstractAsyncContextManager[Any]:
        kwargs: Dict[str, Any] = {"region_name": account.region, "config": STS_CONFIG}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        return session.create_client("sts", **kwargs)

    return _factory


class CredentialsBroker:
    """
    Resolves short-lived credentials per account name.

    The lease cache is the only shared mutable state. Concurrent resolutions
    for the same expired account may both call STS; the last write wins.
    """

    def __init__(
        self,
        registry: AccountRegistry,
        *,
        sts_client_factory: Optional[StsClientFactory] = None,
        clock: Clock = utcnow,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
        duration_seconds: int = DEFAULT_SESSION_DURATION_SECONDS,
        session_prefix: str = DEFAULT_SESSION_PREFIX,
    ):
        self._registry = registry
        self._sts_client_factory = sts_client_factory or default_sts_client_factory()
        self._clock = clock
        self._refresh_margin = refresh_margin
        self._duration_seconds = duration_seconds
        self._session_prefix = session_prefix
        self._leases: Dict[str, CredentialLease] = {}

    @property
    def registry(self) -> AccountRegistry:
        return self._registry

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def refresh_margin(self) -> timedelta:
        return self._refresh_margin

    async def resolve(self, account_name: str) -> CredentialLease:
        """Return a lease valid for longer than the refresh margin."""
        account = self._registry.get(account_name)

        cached = self._leases.get(account.name)
        if cached is not None and cached.is_fresh(self._clock(), self._refresh_margin):
            CREDENTIAL_CACHE_HITS_TOTAL.labels(account=account.name).inc()
            return cached

        lease = await self._assume_role(account)
        self._leases[account.name] = lease
        return lease

    def invalidate(self, account_name: str) -> None:
        """Drop the cached lease so the next resolve performs a fresh exchange."""
        self._leases.pop(account_name, None)

    async def _assume_role(self, account: AWSAccount) -> CredentialLease:
        now = self._clock()
        params: Dict[str, Any] = {
            "RoleArn": account.role_arn,
            "RoleSessionName": build_session_name(
                self._session_prefix, account.name, now
            ),
            "DurationSeconds": self._duration_seconds,
        }
        if account.external_id:
            params["ExternalId"] = account.external_id

        logger.debug("sts_assume_role_started", account=account.name)
        try:
            async with self._sts_client_factory(account) as sts:
                response = await sts.assume_role(**params)
        except ClientError as e:
            error_code = aws_error_code(e) or "Unknown"
            STS_ASSUME_ROLE_TOTAL.labels(account=account.name, outcome="failure").inc()
            logger.error(
                "sts_assume_role_failed",
                account=account.name,
                role_arn=account.role_arn,
                error_code=error_code,
            )
            raise AssumeRoleError(
                f"Failed to assume role for account: {account.name}",
                details={"account": account.name, "aws_error_code": error_code},
            ) from e
        except BotoCoreError as e:
            STS_ASSUME_ROLE_TOTAL.labels(account=account.name, outcome="failure").inc()
            logger.error(
                "sts_assume_role_failed",
                account=account.name,
                role_arn=account.role_arn,
                error_code=type(e).__name__,
            )
            raise AssumeRoleError(
                f"Failed to assume role for account: {account.name}",
                details={"account": account.name, "aws_error_code": type(e).__name__},
            ) from e

        lease = self._lease_from_response(account, response, now)
        STS_ASSUME_ROLE_TOTAL.labels(account=account.name, outcome="success").inc()
        logger.info(
            "sts_assume_role_success",
            account=account.name,
            expires_at=lease.expires_at.isoformat(),
        )
        return lease

    def _lease_from_response(
        self, account: AWSAccount, response: Dict[str, Any], requested_at: datetime
    ) -> CredentialLease:
        raw = response.get("Credentials")
        if not raw or not raw.get("AccessKeyId") or not raw.get("SecretAccessKey"):
            STS_ASSUME_ROLE_TOTAL.labels(account=account.name, outcome="failure").inc()
            logger.error("sts_assume_role_empty_credentials", account=account.name)
            raise AssumeRoleError(
                f"Failed to assume role for account: {account.name}",
                details={"account": account.name},
            )

        expires_at = raw.get("Expiration") or requested_at + timedelta(
            seconds=self._duration_seconds
        )
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        lease = CredentialLease(
            access_key_id=raw["AccessKeyId"],
            secret_access_key=raw["SecretAccessKey"],
            session_token=raw.get("SessionToken", ""),
            expires_at=expires_at,
        )
        if not lease.is_fresh(self._clock(), self._refresh_margin):
            STS_ASSUME_ROLE_TOTAL.labels(account=account.name, outcome="failure").inc()
            logger.error(
                "sts_assume_role_expired_credentials",
                account=account.name,
                expires_at=expires_at.isoformat(),
            )
            raise AssumeRoleError(
                f"STS returned already expiring credentials for account: {account.name}",
                details={"account": account.name},
            )
        return lease


class BrokerCredentialProvider(CredentialProvider):
    """
    botocore credential provider backed by the broker.

    Hands out refreshable credentials whose refresh callback resolves the
    account again, so a client that outlives its lease re-signs with the
    renewed one instead of the key it was created with.
    """

    METHOD = "assume-role-broker"
    CANONICAL_NAME = "custom-assume-role-broker"

    def __init__(self, broker: CredentialsBroker, account_name: str):
        super().__init__()
        self._broker = broker
        self._account_name = account_name

    async def _refresh(self) -> Dict[str, str]:
        lease = await self._broker.resolve(self._account_name)
        return lease.as_refresh_metadata()

    async def load(self) -> AioRefreshableCredentials:
        lease = await self._broker.resolve(self._account_name)
        margin = int(self._broker.refresh_margin.total_seconds())
        return AioRefreshableCredentials(
            access_key=lease.access_key_id,
            secret_key=lease.secret_access_key.get_secret_value(),
            token=lease.session_token.get_secret_value(),
            expiry_time=lease.expires_at,
            refresh_using=self._refresh,
            method=self.METHOD,
            time_fetcher=self._broker.clock,
            advisory_timeout=margin,
            mandatory_timeout=margin,
        )
