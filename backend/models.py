"""
Records passed between discovery, scanning and reporting.

Everything here lives for a single run only.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class AccountHandle:
    """
    Connection details of one Cosmos DB account.

    Fields:
    - endpoint_uri: document endpoint of the account
    - read_only_key: primary read-only master key
    - account_name / subscription_id: where the account was found (informational)
    """
    endpoint_uri: str
    read_only_key: str = field(repr=False)
    account_name: str = ''
    subscription_id: str = ''


@dataclass(frozen=True)
class CollectionIdentity:
    account_id: str
    database_id: str
    collection_id: str


@dataclass(frozen=True)
class Alert:
    """A collection whose provisioned throughput is above its allowed maximum."""
    identity: CollectionIdentity
    actual_quota: int
    maximum_quota: int

    def render(self) -> str:
        return (
            f"`{self.identity.collection_id}` "
            f"(in `{self.identity.account_id}/{self.identity.database_id}`) - "
            f"expected maximum {self.maximum_quota} RU/s, currently {self.actual_quota} RU/s"
        )


@dataclass(frozen=True)
class ScanFailure:
    """An account that could not be scanned (only recorded when failures are isolated)."""
    endpoint_uri: str
    error: str


@dataclass
class RunResult:
    alerts: List[Alert] = field(default_factory=list)
    failures: List[ScanFailure] = field(default_factory=list)
