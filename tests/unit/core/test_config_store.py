"""
Unit tests for core.config_store module.

Tests:
- Default configuration
- update() version bumps and no-op detection
- replace() and reset()
- subscribe() notification and unsubscribe
"""

from relayfeed.core.config_store import RelayConfigStore
from relayfeed.models import DEFAULT_RELAY_URL, RelayConfig, RelayEndpoint


A = RelayEndpoint("wss://a.example.com")
B = RelayEndpoint("wss://b.example.com", write=False)


class TestRelayConfigStore:
    """Single-writer versioned configuration."""

    def test_default_initial_config(self):
        store = RelayConfigStore()
        config = store.read()
        assert config.read_urls() == [DEFAULT_RELAY_URL]
        assert config.version == 0
        assert config.updated_at == 0

    def test_explicit_initial_config(self):
        initial = RelayConfig(endpoints=(A,), version=7)
        assert RelayConfigStore(initial).read() is initial

    def test_replace_bumps_version_once(self):
        store = RelayConfigStore()
        config = store.replace([A, B], updated_at=1700000000)
        assert config.version == 1
        assert config.endpoints == (A, B)
        assert config.updated_at == 1700000000
        assert store.read() is config

    def test_update_ignores_mutator_version(self):
        store = RelayConfigStore()
        config = store.update(lambda c: RelayConfig(endpoints=(A,), version=99))
        assert config.version == 1

    def test_versions_strictly_increase(self):
        store = RelayConfigStore()
        versions = [
            store.replace([A], 1).version,
            store.replace([B], 2).version,
            store.replace([A, B], 3).version,
        ]
        assert versions == [1, 2, 3]

    def test_unchanged_update_is_noop(self):
        store = RelayConfigStore()
        store.replace([A], 5)
        seen = []
        store.subscribe(seen.append)

        config = store.replace([A], 5)

        assert config.version == 1
        assert seen == []

    def test_reset(self):
        store = RelayConfigStore()
        store.replace([A, B], 10)
        config = store.reset()
        assert config.read_urls() == [DEFAULT_RELAY_URL]
        assert config.updated_at == 0
        assert config.version == 2

    def test_subscribe_and_unsubscribe(self):
        store = RelayConfigStore()
        seen: list[RelayConfig] = []
        unsubscribe = store.subscribe(seen.append)

        store.replace([A], 1)
        unsubscribe()
        unsubscribe()
        store.replace([B], 2)

        assert [c.version for c in seen] == [1]

    def test_listener_sees_committed_snapshot(self):
        store = RelayConfigStore()
        observed = []
        store.subscribe(lambda c: observed.append(store.read() is c))
        store.replace([A], 1)
        assert observed == [True]
