"""
Discover every Cosmos DB account visible to the service identity.

Authentication uses the managed identity of the host by default. For local
runs set QUOTA_MONITOR_CREDENTIAL=default to go through DefaultAzureCredential
(Azure CLI login, environment credentials, ...).
"""

import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from azure.core.exceptions import AzureError, ClientAuthenticationError
from azure.identity import DefaultAzureCredential, ManagedIdentityCredential
from azure.mgmt.cosmosdb import CosmosDBManagementClient
from azure.mgmt.subscription import SubscriptionClient

from errors import AuthenticationError, DiscoveryError
from models import AccountHandle

# Configuration
CREDENTIAL_MODE = os.environ.get('QUOTA_MONITOR_CREDENTIAL', 'managed').strip().lower()
MANAGED_IDENTITY_CLIENT_ID = os.environ.get('AZURE_CLIENT_ID', '').strip() or None
REJECTED_STATUS_CODES = (401, 403)


def get_credential():
    """Get the Azure credential of the host identity."""
    if CREDENTIAL_MODE == 'default':
        return DefaultAzureCredential()
    if MANAGED_IDENTITY_CLIENT_ID:
        # User-assigned identity
        return ManagedIdentityCredential(client_id=MANAGED_IDENTITY_CLIENT_ID)
    return ManagedIdentityCredential()


def extract_resource_group(resource_id: str) -> str:
    """Extract the resource group from an Azure resource ID."""
    parts = resource_id.split('/')
    for i, part in enumerate(parts):
        if part.lower() == 'resourcegroups' and i + 1 < len(parts):
            return parts[i + 1]
    raise ValueError(f"No resource group in resource id {resource_id!r}")


class AccountDiscovery:
    """Lists subscriptions, then the Cosmos DB accounts and read-only keys in each."""

    def __init__(
        self,
        credential_provider: Optional[Callable] = None,
        max_workers: Optional[int] = None,
        subscription_client_factory=SubscriptionClient,
        cosmos_client_factory=CosmosDBManagementClient
    ):
        self.credential_provider = credential_provider or get_credential
        self.max_workers = max_workers
        self.subscription_client_factory = subscription_client_factory
        self.cosmos_client_factory = cosmos_client_factory

    def list_subscription_ids(self, credential) -> List[str]:
        subscription_client = self.subscription_client_factory(credential)
        return [sub.subscription_id for sub in subscription_client.subscriptions.list()]

    def list_accounts(self, credential, subscription_id: str) -> List[AccountHandle]:
        """Return a handle for every Cosmos DB account of one subscription."""
        cosmos_client = self.cosmos_client_factory(credential, subscription_id)
        handles = []

        for account in cosmos_client.database_accounts.list():
            resource_group = extract_resource_group(account.id)
            keys = cosmos_client.database_accounts.list_read_only_keys(resource_group, account.name)
            handles.append(AccountHandle(
                endpoint_uri=account.document_endpoint,
                read_only_key=keys.primary_readonly_master_key,
                account_name=account.name,
                subscription_id=subscription_id
            ))

        print(f"DEBUG list_accounts: Found {len(handles)} Cosmos DB accounts in subscription {subscription_id}")
        return handles

    def discover_all(self) -> List[AccountHandle]:
        """
        Return a handle for every Cosmos DB account in every visible subscription.

        Subscriptions are processed concurrently; a failure in any of them fails
        the whole discovery.

        Raises:
            AuthenticationError: the identity is unavailable or was rejected.
            DiscoveryError: the management plane failed for any other reason.
        """
        try:
            credential = self.credential_provider()
            subscription_ids = self.list_subscription_ids(credential)
            print(f"DEBUG discover_all: Found {len(subscription_ids)} subscriptions")

            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = executor.map(lambda sub_id: self.list_accounts(credential, sub_id), subscription_ids)
                return [handle for handles in results for handle in handles]
        except ClientAuthenticationError as e:
            raise AuthenticationError(f"Could not authenticate with Azure: {e}") from e
        except AzureError as e:
            # ARM rejects an identity without role assignments with 403 AuthorizationFailed
            if getattr(e, 'status_code', None) in REJECTED_STATUS_CODES:
                raise AuthenticationError(f"Identity rejected by Azure Resource Manager: {e}") from e
            raise DiscoveryError(f"Could not list Cosmos DB accounts: {type(e).__name__}: {e}") from e
