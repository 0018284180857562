"""
AWS account registry.

Accounts are loaded once at process start from settings: an inline
`AWS_ACCOUNTS` list and/or a YAML file shaped as::

    aws:
      accounts:
        - name: production
          accountId: "123456789012"
          region: eu-west-1
          roleArn: arn:aws:iam::123456789012:role/InventoryReadOnly
          externalId: optional-external-id
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import structlog
import yaml
from pydantic import ValidationError

from app.shared.core.config import Settings
from app.shared.core.credentials import AWSAccount
from app.shared.core.exceptions import ConfigurationError, UnknownAccountError

logger = structlog.get_logger()


def load_accounts_file(path: str) -> List[AWSAccount]:
    """Parse the `aws.accounts` list of a YAML account file."""
    file_path = Path(path)
    try:
        document = yaml.safe_load(file_path.read_text(encoding="utf-8")) or {}
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"AWS accounts file not found: {path}", details={"path": path}
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"AWS accounts file is not valid YAML: {path}", details={"path": path}
        ) from e

    if not isinstance(document, dict):
        raise ConfigurationError(
            "AWS accounts file must contain a mapping", details={"path": path}
        )
    aws_section = document.get("aws")
    if aws_section is None:
        logger.warning("aws_config_section_missing", path=path)
        return []

    raw_accounts: Any = (aws_section or {}).get("accounts") or []
    if not isinstance(raw_accounts, list):
        raise ConfigurationError(
            "aws.accounts must be a list", details={"path": path}
        )

    accounts: List[AWSAccount] = []
    for index, raw in enumerate(raw_accounts):
        try:
            accounts.append(AWSAccount.model_validate(raw))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid AWS account entry at index {index}",
                details={"path": path, "index": index, "errors": e.errors(include_url=False)},
            ) from e
    return accounts


class AccountRegistry:
    """
    Immutable lookup of configured accounts keyed by logical name.
    """

    def __init__(self, accounts: Iterable[AWSAccount]):
        self._accounts: Dict[str, AWSAccount] = {}
        for account in accounts:
            if account.name in self._accounts:
                raise ConfigurationError(
                    f"Duplicate AWS account name: {account.name}",
                    details={"account": account.name},
                )
            self._accounts[account.name] = account
            logger.info(
                "aws_account_loaded",
                account=account.name,
                account_id=account.account_id,
                region=account.region,
            )
        if not self._accounts:
            logger.warning("aws_accounts_not_configured")

    @classmethod
    def from_settings(cls, settings: Settings) -> "AccountRegistry":
        accounts = list(settings.AWS_ACCOUNTS)
        if settings.AWS_ACCOUNTS_FILE:
            accounts.extend(load_accounts_file(settings.AWS_ACCOUNTS_FILE))
        return cls(accounts)

    def get(self, name: str) -> AWSAccount:
        """Returns the account or raises UnknownAccountError."""
        account = self._accounts.get(name)
        if account is None:
            raise UnknownAccountError(name)
        return account

    def find(self, name: str) -> Optional[AWSAccount]:
        return self._accounts.get(name)

    def all(self) -> List[AWSAccount]:
        return list(self._accounts.values())

    def names(self) -> List[str]:
        return list(self._accounts)

    def __contains__(self, name: object) -> bool:
        return name in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[AWSAccount]:
        return iter(self._accounts.values())
