"""
Tests for subscription and account discovery with mocked management clients.
"""

from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from azure.core.exceptions import ClientAuthenticationError, HttpResponseError

from account_discovery import AccountDiscovery, extract_resource_group
from errors import AuthenticationError, DiscoveryError
from models import AccountHandle


def cosmos_account(subscription_id, resource_group, name):
    return SimpleNamespace(
        id=(f'/subscriptions/{subscription_id}/resourceGroups/{resource_group}'
            f'/providers/Microsoft.DocumentDB/databaseAccounts/{name}'),
        name=name,
        document_endpoint=f'https://{name}.documents.azure.com:443/',
    )


def make_discovery(accounts_by_subscription, credential=None):
    credential = credential or object()

    subscription_client = Mock()
    subscription_client.subscriptions.list.return_value = [
        SimpleNamespace(subscription_id=sub_id) for sub_id in accounts_by_subscription
    ]

    cosmos_clients = {}
    for sub_id, accounts in accounts_by_subscription.items():
        client = Mock()
        client.database_accounts.list.return_value = accounts
        client.database_accounts.list_read_only_keys.side_effect = (
            lambda rg, name: SimpleNamespace(primary_readonly_master_key=f'key-{name}')
        )
        cosmos_clients[sub_id] = client

    def cosmos_client_factory(cred, subscription_id):
        assert cred is credential
        return cosmos_clients[subscription_id]

    discovery = AccountDiscovery(
        credential_provider=lambda: credential,
        subscription_client_factory=lambda cred: subscription_client,
        cosmos_client_factory=cosmos_client_factory,
    )
    return discovery, cosmos_clients


def test_extract_resource_group():
    resource_id = '/subscriptions/s1/resourceGroups/rg-data/providers/Microsoft.DocumentDB/databaseAccounts/a1'
    assert extract_resource_group(resource_id) == 'rg-data'
    assert extract_resource_group(resource_id.replace('resourceGroups', 'resourcegroups')) == 'rg-data'
    with pytest.raises(ValueError):
        extract_resource_group('/subscriptions/s1')


def test_discovers_accounts_across_subscriptions():
    discovery, cosmos_clients = make_discovery({
        'sub1': [cosmos_account('sub1', 'rg1', 'acct1'), cosmos_account('sub1', 'rg2', 'acct2')],
        'sub2': [cosmos_account('sub2', 'rg3', 'acct3')],
        'sub3': [],
    })

    handles = discovery.discover_all()

    assert sorted(handles, key=lambda h: h.account_name) == [
        AccountHandle('https://acct1.documents.azure.com:443/', 'key-acct1', 'acct1', 'sub1'),
        AccountHandle('https://acct2.documents.azure.com:443/', 'key-acct2', 'acct2', 'sub1'),
        AccountHandle('https://acct3.documents.azure.com:443/', 'key-acct3', 'acct3', 'sub2'),
    ]
    cosmos_clients['sub1'].database_accounts.list_read_only_keys.assert_any_call('rg2', 'acct2')


def test_no_subscriptions():
    discovery, _ = make_discovery({})
    assert discovery.discover_all() == []


def test_unavailable_identity_raises_authentication_error():
    def no_identity():
        raise ClientAuthenticationError('ManagedIdentityCredential authentication unavailable')

    discovery = AccountDiscovery(credential_provider=no_identity)

    with pytest.raises(AuthenticationError):
        discovery.discover_all()


def test_rejected_identity_raises_authentication_error():
    subscription_client = Mock()
    subscription_client.subscriptions.list.side_effect = ClientAuthenticationError('AADSTS700016')
    discovery = AccountDiscovery(
        credential_provider=object,
        subscription_client_factory=lambda cred: subscription_client,
    )

    with pytest.raises(AuthenticationError):
        discovery.discover_all()


def test_failure_in_one_subscription_fails_discovery():
    discovery, cosmos_clients = make_discovery({
        'sub1': [cosmos_account('sub1', 'rg1', 'acct1')],
        'sub2': [cosmos_account('sub2', 'rg2', 'acct2')],
    })
    cosmos_clients['sub2'].database_accounts.list.side_effect = HttpResponseError('Forbidden')

    with pytest.raises(DiscoveryError) as excinfo:
        discovery.discover_all()

    assert isinstance(excinfo.value.__cause__, HttpResponseError)


def authorization_failed():
    error = HttpResponseError('AuthorizationFailed')
    error.status_code = 403
    return error


def test_forbidden_subscription_listing_raises_authentication_error():
    subscription_client = Mock()
    subscription_client.subscriptions.list.side_effect = authorization_failed()
    discovery = AccountDiscovery(
        credential_provider=object,
        subscription_client_factory=lambda cred: subscription_client,
    )

    with pytest.raises(AuthenticationError):
        discovery.discover_all()


def test_forbidden_key_listing_raises_authentication_error():
    discovery, cosmos_clients = make_discovery({'sub1': [cosmos_account('sub1', 'rg1', 'acct1')]})
    cosmos_clients['sub1'].database_accounts.list_read_only_keys.side_effect = authorization_failed()

    with pytest.raises(AuthenticationError):
        discovery.discover_all()
