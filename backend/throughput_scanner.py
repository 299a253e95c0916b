"""
Scan every collection of one Cosmos DB account for throughput above its maximum.

Offers come in two shapes:
    - V2 offers carry the provisioned throughput in content.offerThroughput
    - legacy (V1) offers only name a performance level (S1/S2/S3); the offer is
      read again by its self link and the level is mapped to its fixed RU/s

Collections without an offer of their own (shared database throughput,
serverless accounts) cannot exceed a per-collection maximum and are skipped.
"""

from typing import Any, Callable, Dict, List, Optional

from azure.core.exceptions import AzureError

from cosmos_data_plane import CosmosDataPlane
from errors import ConnectivityError
from models import Alert, CollectionIdentity
from quota_policy import QuotaPolicy

# Fixed throughput of the legacy performance levels
LEGACY_OFFER_THROUGHPUT = {
    'S1': 250,
    'S2': 1000,
    'S3': 2500,
}


def find_offer(offers: List[Dict[str, Any]], collection: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the offer provisioning the given collection, matched by resource link."""
    self_link = collection.get('_self')
    for offer in offers:
        if offer.get('resource') == self_link:
            return offer
    return None


def embedded_throughput(offer: Dict[str, Any]) -> Optional[int]:
    throughput = (offer.get('content') or {}).get('offerThroughput')
    if throughput is None:
        return None
    try:
        return int(throughput)
    except (TypeError, ValueError):
        print(f"DEBUG embedded_throughput: Offer {offer.get('_self')} has malformed throughput {throughput!r}")
        return None


def resolve_throughput(data_plane, offer: Dict[str, Any]) -> Optional[int]:
    """Normalize an offer of either schema version into RU/s."""
    throughput = embedded_throughput(offer)
    if throughput is not None:
        return throughput

    legacy_offer = data_plane.read_offer(offer['_self'])
    throughput = embedded_throughput(legacy_offer)
    if throughput is not None:
        return throughput
    return LEGACY_OFFER_THROUGHPUT.get(legacy_offer.get('offerType'))


def scan_account(
    endpoint_uri: str,
    read_only_key: str,
    policy: Optional[QuotaPolicy] = None,
    client_factory: Optional[Callable[[str, str], Any]] = None
) -> List[Alert]:
    """
    Check every collection of one account against its maximum throughput.

    Args:
        endpoint_uri: document endpoint of the account
        read_only_key: read-only master key of the account
        policy: resolver for maximum throughput (defaults to the process environment)
        client_factory: builds the data-plane client, CosmosDataPlane by default

    Returns:
        One Alert per collection whose throughput is strictly above its maximum.

    Raises:
        ConnectivityError: the account has no endpoint or key yet, could not be
            reached, or rejected the key.
    """
    policy = policy or QuotaPolicy()
    client_factory = client_factory or CosmosDataPlane

    if not endpoint_uri or not read_only_key:
        # Accounts still being provisioned have no document endpoint
        raise ConnectivityError(endpoint_uri, "account has no document endpoint or read-only key")

    try:
        data_plane = client_factory(endpoint_uri, read_only_key)
    except AzureError as e:
        raise ConnectivityError(endpoint_uri, f"{type(e).__name__}: {e}") from e

    try:
        account_id = data_plane.account_id
        print(f"DEBUG scan_account: Scanning account {account_id} ({endpoint_uri})")

        databases = data_plane.list_databases()
        offers = data_plane.list_offers()

        alerts = []
        for database in databases:
            database_id = database['id']
            print(f"DEBUG scan_account: Database {account_id}/{database_id}")

            for collection in data_plane.list_collections(database_id):
                collection_id = collection['id']
                identity = CollectionIdentity(account_id, database_id, collection_id)

                offer = find_offer(offers, collection)
                if offer is None:
                    print(f"DEBUG scan_account: No dedicated offer for {account_id}/{database_id}/{collection_id}, skipping")
                    continue

                throughput = resolve_throughput(data_plane, offer)
                if throughput is None:
                    print(f"DEBUG scan_account: Unknown offer type {offer.get('offerType')!r} "
                          f"for {account_id}/{database_id}/{collection_id}, skipping")
                    continue

                maximum = policy.resolve(account_id, database_id, collection_id)
                print(f"DEBUG scan_account: Collection {account_id}/{database_id}/{collection_id}: "
                      f"{throughput} RU/s (maximum {maximum} RU/s)")

                if throughput > maximum:
                    alerts.append(Alert(identity, throughput, maximum))
    except AzureError as e:
        raise ConnectivityError(endpoint_uri, f"{type(e).__name__}: {e}") from e
    finally:
        data_plane.close()

    return alerts
