"""
Read-only Cosmos DB (SQL API) data-plane access for one database account.

The scanner only needs a handful of reads, so they are wrapped here instead of
being spread across the scanning code:
    - list databases
    - list collections (containers) of a database
    - list throughput offers of the account
    - read a single offer by its self link

Offers are not exposed through the high-level azure-cosmos proxies, so the
offer reads go through the client's connection object.
"""

from typing import Any, Dict, List
from urllib.parse import urlparse

from azure.cosmos import CosmosClient


def clean_setting(value: str) -> str:
    """Strip whitespace and surrounding quotes copied along with portal values."""
    return value.strip().strip('"').strip("'")


def account_id_from_endpoint(endpoint_uri: str) -> str:
    """
    Return the account id of a Cosmos DB endpoint.

    The document endpoint of an account is https://<account>.documents.azure.com:443/,
    so the account id is the first label of the host name.
    """
    host = urlparse(clean_setting(endpoint_uri)).hostname or ''
    return host.split('.')[0] if host else endpoint_uri


class CosmosDataPlane:
    """Thin wrapper around CosmosClient exposing the reads used by the scanner."""

    def __init__(self, endpoint_uri: str, read_only_key: str):
        if not endpoint_uri or not read_only_key:
            raise ValueError("endpoint_uri and read_only_key must be set")
        self.endpoint_uri = clean_setting(endpoint_uri)
        self.client = CosmosClient(self.endpoint_uri, credential=clean_setting(read_only_key))

    @property
    def account_id(self) -> str:
        return account_id_from_endpoint(self.endpoint_uri)

    def list_databases(self) -> List[Dict[str, Any]]:
        return list(self.client.list_databases())

    def list_collections(self, database_id: str) -> List[Dict[str, Any]]:
        database = self.client.get_database_client(database_id)
        return list(database.list_containers())

    def list_offers(self) -> List[Dict[str, Any]]:
        return list(self.client.client_connection.ReadOffers())

    def read_offer(self, offer_link: str) -> Dict[str, Any]:
        return self.client.client_connection.ReadOffer(offer_link)

    def close(self):
        self.client.close()
