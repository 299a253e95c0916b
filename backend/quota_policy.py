"""
Per-collection maximum throughput policy.

Overrides are read from settings keyed as
    MaximumThroughput:<account>:<database>:<collection>=<RU/s>

App Service and Functions hosts do not allow ':' in environment variable
names, so the '__' form (MaximumThroughput__<account>__<database>__<collection>)
is accepted too. Anything missing or not an integer falls back to the default.

The default is 2000 RU/s unless QUOTA_MONITOR_DEFAULT_MAXIMUM replaces it.
"""

import os
from typing import Mapping, Optional

KEY_PREFIX = 'MaximumThroughput'
KEY_DELIMITER = ':'
ALT_KEY_DELIMITER = '__'
DEFAULT_MAXIMUM_THROUGHPUT = 2000


def _default_maximum_from_env() -> int:
    """
    Global default ceiling. QUOTA_MONITOR_DEFAULT_MAXIMUM overrides the built-in
    default of 2000 RU/s; unset or malformed keeps 2000.
    """
    value = os.environ.get('QUOTA_MONITOR_DEFAULT_MAXIMUM')
    try:
        return int(value) if value else DEFAULT_MAXIMUM_THROUGHPUT
    except ValueError:
        print(f"⚠️  QUOTA_MONITOR_DEFAULT_MAXIMUM={value!r} is not an integer, using {DEFAULT_MAXIMUM_THROUGHPUT}")
        return DEFAULT_MAXIMUM_THROUGHPUT


def policy_key(account_id: str, database_id: str, collection_id: str, delimiter: str = KEY_DELIMITER) -> str:
    """Build the settings key holding the maximum throughput of one collection."""
    return delimiter.join([KEY_PREFIX, account_id, database_id, collection_id])


class QuotaPolicy:
    """Resolves the maximum allowed throughput of a collection."""

    def __init__(self, settings: Optional[Mapping[str, str]] = None, default_maximum: Optional[int] = None):
        self.settings = os.environ if settings is None else settings
        self.default_maximum = _default_maximum_from_env() if default_maximum is None else default_maximum

    def resolve(self, account_id: str, database_id: str, collection_id: str) -> int:
        for delimiter in (KEY_DELIMITER, ALT_KEY_DELIMITER):
            raw = self.settings.get(policy_key(account_id, database_id, collection_id, delimiter))
            if raw is None:
                continue
            try:
                return int(str(raw).strip())
            except ValueError:
                # Malformed overrides are ignored
                continue
        return self.default_maximum


def resolve_maximum_throughput(account_id: str, database_id: str, collection_id: str) -> int:
    """Resolve against the process environment."""
    return QuotaPolicy().resolve(account_id, database_id, collection_id)
