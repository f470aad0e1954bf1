"""Tests for the local token cache."""

import json

import pytest

from conftest import make_token
from occswap.token_cache import (
    CACHE_TTL_SECONDS,
    TokenCache,
    TokenCacheStore,
    TokenNotFoundError,
    filter_tokens,
)

NOW = 1_700_000_000


class FakeClock:
    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(settings, clock) -> TokenCacheStore:
    return TokenCacheStore(settings.tokens_file, clock=clock)


class TestPersistence:
    """Tests for load/save."""

    def test_load_missing_file(self, store):
        assert store.load() is None

    def test_round_trip_preserves_order(self, store, sample_tokens):
        store.save(sample_tokens, NOW + 60)
        cache = store.load()

        assert cache is not None
        assert cache.tokens == sample_tokens
        assert cache.expires_at == NOW + 60

    def test_default_expiry_is_seven_days(self, store, sample_tokens):
        store.save(sample_tokens)
        assert store.load().expires_at == NOW + CACHE_TTL_SECONDS

    def test_file_format(self, store, sample_tokens):
        """The file uses the camelCase shape shared with other OCC tools."""
        store.save(sample_tokens[:1], NOW + 60)
        data = json.loads(store.path.read_text())

        assert set(data) == {"tokens", "lastUpdated", "expiresAt"}
        assert data["tokens"][0]["assetId"] == "nep141:wrap.near"
        assert data["lastUpdated"].startswith("2023-11-14T")

    def test_save_replaces_wholesale(self, store, sample_tokens):
        store.save(sample_tokens, NOW + 60)
        store.save(sample_tokens[:1], NOW + 60)
        assert store.load().tokens == sample_tokens[:1]

    def test_save_error_is_logged(self, tmp_path, clock, sample_tokens, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = TokenCacheStore(blocker / "tokens.json", clock=clock)

        store.save(sample_tokens, NOW + 60)

        assert "Error saving token cache" in caplog.text
        assert store.load() is None

    def test_malformed_file_is_no_cache(self, store, caplog):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")

        assert store.load() is None
        assert "Error loading token cache" in caplog.text

    def test_wrong_shape_is_no_cache(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps({"tokens": "nope"}))
        assert store.load() is None

    def test_clear(self, store, sample_tokens):
        store.save(sample_tokens)
        store.clear()
        store.clear()
        assert store.load() is None


class TestExpiry:
    """Expiry uses strict greater-than."""

    def _cache(self, expires_at: int) -> TokenCache:
        return TokenCache(tokens=[], last_updated="2023-11-14T22:13:20+00:00", expires_at=expires_at)

    def test_expires_at_now_is_fresh(self, store):
        assert store.is_expired(self._cache(NOW)) is False

    def test_expires_at_past_is_expired(self, store):
        assert store.is_expired(self._cache(NOW - 1)) is True

    def test_future_is_fresh(self, store):
        assert store.is_expired(self._cache(NOW + 1)) is False


class TestGetOrFetch:
    """Tests for the read-through behavior."""

    @pytest.mark.asyncio
    async def test_fresh_cache_skips_fetch(self, store, sample_tokens):
        store.save(sample_tokens, NOW + 60)
        calls = []

        async def fetcher():
            calls.append(1)
            return [], None

        tokens = await store.get_or_fetch(fetcher)

        assert tokens == sample_tokens
        assert calls == []

    @pytest.mark.asyncio
    async def test_missing_cache_fetches_once_and_saves(self, store, sample_tokens):
        calls = []

        async def fetcher():
            calls.append(1)
            return sample_tokens, NOW + 3600

        tokens = await store.get_or_fetch(fetcher)

        assert tokens == sample_tokens
        assert len(calls) == 1
        assert store.load().tokens == sample_tokens
        assert store.load().expires_at == NOW + 3600

    @pytest.mark.asyncio
    async def test_expired_cache_refetches(self, store, sample_tokens, clock):
        store.save([make_token("OLD")], NOW + 10)
        clock.now = NOW + 11
        calls = []

        async def fetcher():
            calls.append(1)
            return sample_tokens, None

        tokens = await store.get_or_fetch(fetcher)

        assert tokens == sample_tokens
        assert len(calls) == 1
        assert store.load().expires_at == NOW + 11 + CACHE_TTL_SECONDS

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, store):
        async def fetcher():
            raise RuntimeError("API down")

        with pytest.raises(RuntimeError):
            await store.get_or_fetch(fetcher)
        assert store.load() is None


class TestFindToken:
    """Tests for exact and partial token lookup."""

    def test_no_cache(self, store):
        assert store.find_token("USDC") is None

    def test_exact_match(self, store, sample_tokens):
        store.save(sample_tokens)
        token = store.find_token("USDT", "near")
        assert token.asset_id == "nep141:usdt.tether-token.near"

    def test_substring_fallback_respects_chain(self, store):
        near_usdc = make_token("USDC", "near")
        eth_usdc = make_token("USDC", "ethereum")
        store.save([eth_usdc, near_usdc])

        assert store.find_token("USD", "near") == near_usdc

    def test_case_insensitive(self, store, sample_tokens):
        store.save(sample_tokens)
        assert store.find_token("usdc", "NEAR") == store.find_token("USDC", "near")
        assert store.find_token("usdc", "NEAR").blockchain == "near"

    def test_exact_beats_earlier_partial(self, store):
        """An exact match wins even when a partial match comes first."""
        store.save([make_token("USDC.e"), make_token("USDC")])
        assert store.find_token("usdc").symbol == "USDC"

    def test_partial_takes_first_in_order(self, store):
        store.save([make_token("USDT"), make_token("USDC")])
        assert store.find_token("usd").symbol == "USDT"

    def test_default_chain_is_near(self, store, sample_tokens):
        store.save(sample_tokens)
        assert store.find_token("USDC").blockchain == "near"

    def test_not_found(self, store, sample_tokens):
        store.save(sample_tokens)
        assert store.find_token("SOL", "near") is None
        assert store.find_token("DOGE") is None

    def test_require_token_raises(self, store, sample_tokens):
        store.save(sample_tokens)
        with pytest.raises(TokenNotFoundError, match='Token "DOGE" not found on near'):
            store.require_token("DOGE", "NEAR")


class TestFilterTokens:
    """Tests for the listing filter."""

    def test_filter_by_chain(self, sample_tokens):
        result = filter_tokens(sample_tokens, blockchain="ETHEREUM")
        assert [t.blockchain for t in result] == ["ethereum"]

    def test_filter_by_symbol_substring(self, sample_tokens):
        result = filter_tokens(sample_tokens, symbol="usd")
        assert [t.symbol for t in result] == ["USDC", "USDC", "USDT"]

    def test_no_filters(self, sample_tokens):
        assert filter_tokens(sample_tokens) == sample_tokens
