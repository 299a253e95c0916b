"""
Exceptions raised by the throughput quota monitor.
"""


class QuotaMonitorError(Exception):
    """Base class for all monitor failures."""


class AuthenticationError(QuotaMonitorError):
    """The managed identity could not be established or was rejected by Azure."""


class ConnectivityError(QuotaMonitorError):
    """A Cosmos DB account could not be reached or rejected its read-only key."""

    def __init__(self, endpoint_uri, message):
        super().__init__(f"{endpoint_uri}: {message}")
        self.endpoint_uri = endpoint_uri


class NotificationError(QuotaMonitorError):
    """The alert email could not be sent."""


class DiscoveryError(QuotaMonitorError):
    """Subscriptions or Cosmos DB accounts could not be listed."""
