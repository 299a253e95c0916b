"""
Tests for maximum throughput resolution.
"""

from quota_policy import DEFAULT_MAXIMUM_THROUGHPUT, QuotaPolicy, policy_key, resolve_maximum_throughput


def test_policy_key_format():
    assert policy_key('acct1', 'db1', 'coll1') == 'MaximumThroughput:acct1:db1:coll1'
    assert policy_key('acct1', 'db1', 'coll1', '__') == 'MaximumThroughput__acct1__db1__coll1'


def test_missing_override_uses_default():
    policy = QuotaPolicy(settings={}, default_maximum=DEFAULT_MAXIMUM_THROUGHPUT)
    assert policy.resolve('acct1', 'db1', 'coll1') == 2000


def test_integer_override_wins():
    policy = QuotaPolicy(settings={'MaximumThroughput:acct1:db1:coll1': '6000'}, default_maximum=2000)
    assert policy.resolve('acct1', 'db1', 'coll1') == 6000
    # Other collections are unaffected
    assert policy.resolve('acct1', 'db1', 'coll2') == 2000


def test_malformed_override_uses_default():
    for value in ['lots', '', '12.5', '4OO']:
        policy = QuotaPolicy(settings={'MaximumThroughput:acct1:db1:coll1': value}, default_maximum=2000)
        assert policy.resolve('acct1', 'db1', 'coll1') == 2000


def test_double_underscore_override():
    policy = QuotaPolicy(settings={'MaximumThroughput__acct1__db1__coll1': ' 800 '}, default_maximum=2000)
    assert policy.resolve('acct1', 'db1', 'coll1') == 800


def test_colon_override_wins_over_double_underscore():
    settings = {
        'MaximumThroughput:acct1:db1:coll1': '1000',
        'MaximumThroughput__acct1__db1__coll1': '3000',
    }
    assert QuotaPolicy(settings=settings, default_maximum=2000).resolve('acct1', 'db1', 'coll1') == 1000


def test_default_maximum_from_environment(monkeypatch):
    monkeypatch.setenv('QUOTA_MONITOR_DEFAULT_MAXIMUM', '1500')
    assert QuotaPolicy(settings={}).resolve('acct1', 'db1', 'coll1') == 1500

    monkeypatch.setenv('QUOTA_MONITOR_DEFAULT_MAXIMUM', 'not-a-number')
    assert QuotaPolicy(settings={}).resolve('acct1', 'db1', 'coll1') == DEFAULT_MAXIMUM_THROUGHPUT


def test_resolve_from_process_environment(monkeypatch):
    monkeypatch.delenv('QUOTA_MONITOR_DEFAULT_MAXIMUM', raising=False)
    monkeypatch.setenv('MaximumThroughput__acct9__db9__coll9', '9000')
    assert resolve_maximum_throughput('acct9', 'db9', 'coll9') == 9000
    assert resolve_maximum_throughput('acct9', 'db9', 'other') == DEFAULT_MAXIMUM_THROUGHPUT


def test_malformed_colon_override_falls_through_to_double_underscore():
    settings = {
        'MaximumThroughput:acct1:db1:coll1': 'abc',
        'MaximumThroughput__acct1__db1__coll1': '6000',
    }
    assert QuotaPolicy(settings=settings, default_maximum=2000).resolve('acct1', 'db1', 'coll1') == 6000
