"""
Unit tests for services.feed module.

Tests:
- FeedClient construction and lifecycle
- Cached reads keyed by relay configuration version
- Empty results on total relay failure
- Relay-list sync and logout through the facade
- Profile retry and fallback
"""

import pytest

from relayfeed.core.exceptions import ConfigurationError
from relayfeed.models import DEFAULT_RELAY_URL, EventKind, Profile, RelayEndpoint
from relayfeed.services.configs import FeedConfig, RetryConfig
from relayfeed.services.feed import FeedClient
from relayfeed.services.layout import MasonryLayout
from tests.fixtures.notes import AUTHOR, CREATED_AT, FakeRelays, hex_id, make_note


@pytest.fixture
def relays(sample_notes) -> FakeRelays:
    return FakeRelays(sample_notes.values())


@pytest.fixture
def client(relays: FakeRelays) -> FeedClient:
    return FeedClient(query_fn=relays)


# ============================================================================
# Construction Tests
# ============================================================================


class TestConstruction:
    """Construction, factories, and lifecycle."""

    def test_defaults(self, client: FeedClient) -> None:
        assert client.store.read().read_urls() == [DEFAULT_RELAY_URL]
        assert client.store.read().version == 0
        assert client.group.timeout == 1.5
        assert len(client.cache) == 0

    def test_configured_relays(self, relays: FakeRelays) -> None:
        data = {"relays": [{"url": "wss://a.example.com"}]}
        client = FeedClient.from_dict(data, query_fn=relays)
        assert client.store.read().read_urls() == ["wss://a.example.com"]

    def test_from_dict_invalid(self) -> None:
        with pytest.raises(ConfigurationError):
            FeedClient.from_dict({"multiplexer": {"timeout": 100}})

    def test_from_yaml(self, tmp_path, relays: FakeRelays) -> None:
        path = tmp_path / "feed.yaml"
        path.write_text("safe_mode: true\nfeed_limit: 20\n")
        client = FeedClient.from_yaml(path, query_fn=relays)
        assert client.config.safe_mode is True
        assert client.config.feed_limit == 20

    async def test_context_manager(self, client: FeedClient) -> None:
        async with client as entered:
            assert entered is client

    def test_create_layout(self, relays: FakeRelays) -> None:
        client = FeedClient(FeedConfig.from_dict({"layout": {"columns": 2}}), query_fn=relays)

        async def measure() -> list[float]:
            return [0.0, 0.0]

        layout = client.create_layout(measure)
        assert isinstance(layout, MasonryLayout)
        assert layout.columns == 2


# ============================================================================
# Feed Tests
# ============================================================================


class TestFetchFeed:
    """FeedClient.fetch_feed()."""

    async def test_photos(self, client, sample_notes) -> None:
        notes = await client.fetch_feed("photos")
        assert [n.id for n in notes] == [sample_notes["photo"].id, sample_notes["imeta"].id]

    async def test_cached(self, client, relays) -> None:
        await client.fetch_feed("text")
        await client.fetch_feed("text")
        assert len(relays.calls) == 1

    async def test_categories_cached_separately(self, client, relays) -> None:
        await client.fetch_feed("text")
        await client.fetch_feed("photos")
        assert len(relays.calls) == 2

    async def test_limit(self, client, relays) -> None:
        await client.fetch_feed("all", limit=5)
        assert relays.calls[0][1][0].limit == 5

    async def test_zero_limit_rejected(self, client, relays) -> None:
        with pytest.raises(ValueError, match="limit"):
            await client.fetch_feed("all", limit=0)
        assert relays.calls == []

    async def test_unknown_category(self, client) -> None:
        with pytest.raises(ValueError):
            await client.fetch_feed("podcasts")

    async def test_total_failure_is_empty_and_not_cached(self, client, relays) -> None:
        relays.failing = {DEFAULT_RELAY_URL}
        assert await client.fetch_feed("text") == []

        relays.failing = set()
        assert len(await client.fetch_feed("text")) == 3

    async def test_safe_mode(self, relays) -> None:
        relays.add(make_note(50, content="nsfw pic https://x.example.com/a.png"))
        client = FeedClient(FeedConfig(safe_mode=True), query_fn=relays)

        notes = await client.fetch_feed("photos")

        assert hex_id(50) not in [n.id for n in notes]
        assert len(notes) == 2

    async def test_config_change_invalidates(self, client, relays) -> None:
        await client.fetch_feed("text")
        assert len(client.cache) == 1

        client.store.replace([RelayEndpoint("wss://a.example.com")], updated_at=CREATED_AT)
        assert len(client.cache) == 0

        await client.fetch_feed("text")
        assert relays.urls_called() == [DEFAULT_RELAY_URL, "wss://a.example.com"]


class TestUserPosts:
    """FeedClient.fetch_user_posts()."""

    async def test_top_level_by_author(self, relays, client) -> None:
        relays.add(make_note(60, content="someone else", pubkey="c" * 64))

        posts = await client.fetch_user_posts(AUTHOR)

        assert all(n.pubkey == AUTHOR and not n.is_reply for n in posts)
        assert all(n.kind == EventKind.TEXT_NOTE for n in posts)
        assert hex_id(2) not in [n.id for n in posts]
        assert len(posts) == 3


# ============================================================================
# Note, Reaction, and Reply Tests
# ============================================================================


class TestNoteReads:
    """Single notes, resolution, reactions, and replies."""

    async def test_fetch_note(self, client) -> None:
        note = await client.fetch_note(hex_id(1))
        assert note is not None
        assert note.content == "gm nostr"

    async def test_resolve(self, client, sample_notes) -> None:
        resolved = await client.resolve(sample_notes["photo"])
        assert resolved.images == ("https://cdn.example.com/cat.png",)

    async def test_reactions(self, client) -> None:
        summary = await client.reactions(hex_id(1))
        assert summary["+"].count == 1

    async def test_reactions_mutation_does_not_reach_cache(self, client, relays) -> None:
        first = await client.reactions(hex_id(1))
        first.clear()

        second = await client.reactions(hex_id(1))

        assert second["+"].count == 1
        assert second["+"].reactor_keys == (AUTHOR,)
        assert len(relays.calls) == 1

    async def test_replies(self, client, sample_notes) -> None:
        replies = await client.replies(hex_id(1))
        assert [n.id for n in replies] == [sample_notes["reply"].id]

    async def test_failures_are_empty(self, client, relays) -> None:
        relays.failing = {DEFAULT_RELAY_URL}
        assert await client.reactions(hex_id(1)) == {}
        assert await client.replies(hex_id(1)) == []
        assert await client.fetch_note(hex_id(1)) is None


# ============================================================================
# Profile Tests
# ============================================================================


class TestProfile:
    """FeedClient.profile()."""

    async def test_found(self, relays, client) -> None:
        relays.add(make_note(70, kind=EventKind.METADATA, content='{"name": "alice"}'))
        profile = await client.profile(AUTHOR)
        assert profile.metadata.name == "alice"

    async def test_retry_then_fallback(self, relays) -> None:
        config = FeedConfig(retry=RetryConfig(max_attempts=2, initial_delay=0.0, max_delay=0.0))
        client = FeedClient(config, query_fn=relays)
        relays.failing = {DEFAULT_RELAY_URL}

        profile = await client.profile(AUTHOR)

        assert profile == Profile(AUTHOR)
        assert len(relays.calls) == 2

    async def test_single_attempt_not_retried(self, relays) -> None:
        client = FeedClient(FeedConfig(retry=RetryConfig(max_attempts=1)), query_fn=relays)
        relays.failing = {DEFAULT_RELAY_URL}

        assert await client.profile(AUTHOR) == Profile(AUTHOR)
        assert len(relays.calls) == 1

    async def test_recovers_on_retry(self, relays) -> None:
        relays.add(make_note(70, kind=EventKind.METADATA, content='{"name": "alice"}'))
        attempts = []

        async def flaky(url, descriptors, timeout):
            attempts.append(url)
            if len(attempts) == 1:
                raise OSError("connection reset")
            return await relays(url, descriptors, timeout)

        config = FeedConfig(retry=RetryConfig(max_attempts=3, initial_delay=0.0, max_delay=0.0))
        profile = await FeedClient(config, query_fn=flaky).profile(AUTHOR)

        assert profile.metadata.name == "alice"
        assert len(attempts) == 2


# ============================================================================
# Relay List Tests
# ============================================================================


class TestRelayList:
    """sync_relays() and logout()."""

    async def test_sync_then_logout(self, client, relays) -> None:
        relays.add(
            make_note(80, kind=EventKind.RELAY_LIST, tags=[["r", "wss://a.example.com"]])
        )

        assert await client.sync_relays(AUTHOR) is True
        assert client.store.read().read_urls() == ["wss://a.example.com"]

        await client.fetch_feed("text")
        assert relays.urls_called()[-1] == "wss://a.example.com"

        assert await client.logout() is True
        assert client.store.read().read_urls() == [DEFAULT_RELAY_URL]
