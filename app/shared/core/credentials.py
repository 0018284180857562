"""
Typed Credential Classes
Accounts are loaded once from configuration; leases are produced by the
credentials broker from STS AssumeRole responses.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel


class AWSAccount(BaseModel):
    """A logical AWS account reachable through a cross-account role."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    name: str = Field(..., min_length=1)
    account_id: str = Field(..., min_length=12, max_length=12, pattern=r"^\d{12}$")
    region: str = "us-east-1"
    role_arn: str = Field(..., min_length=20)
    external_id: Optional[str] = None


class CredentialLease(BaseModel):
    """Temporary STS credentials for one account, replaced wholesale on renewal."""

    model_config = ConfigDict(frozen=True)

    access_key_id: str
    secret_access_key: SecretStr
    session_token: SecretStr
    expires_at: datetime

    def is_fresh(self, now: datetime, margin: timedelta) -> bool:
        return self.expires_at > now + margin

    def as_refresh_metadata(self) -> Dict[str, str]:
        """Metadata shape consumed by botocore refreshable credentials."""
        return {
            "access_key": self.access_key_id,
            "secret_key": self.secret_access_key.get_secret_value(),
            "token": self.session_token.get_secret_value(),
            "expiry_time": self.expires_at.isoformat(),
        }
