"""Local token list cache.

The swap API's token list changes rarely, so it is kept in
``~/.occ/tokens.json`` for a week and refreshed on demand. File shape::

    {
      "tokens": [{"symbol": ..., "name": ..., "blockchain": ...,
                  "decimals": ..., "assetId": ...}],
      "lastUpdated": "<ISO-8601>",
      "expiresAt": <epoch seconds>
    }

A missing or unreadable cache is never fatal: it behaves as "no cache"
and the next read-through fetch rebuilds it.
"""

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from occswap.errors import OccSwapError

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 7 * 24 * 60 * 60  # 7 days


class Token(BaseModel):
    """A swappable token as listed by the swap API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str
    name: str
    blockchain: str
    decimals: int = Field(..., ge=0)
    asset_id: str = Field(..., alias="assetId")

    @property
    def key(self) -> tuple[str, str]:
        """Identity of a token: (symbol, blockchain), case-insensitive."""
        return self.symbol.lower(), self.blockchain.lower()


class TokenCache(BaseModel):
    """Persisted token list with its expiry."""

    model_config = ConfigDict(populate_by_name=True)

    tokens: list[Token] = Field(default_factory=list)
    last_updated: str = Field(..., alias="lastUpdated")
    expires_at: int = Field(..., alias="expiresAt")


class TokenNotFoundError(OccSwapError):
    """Raised when a symbol cannot be resolved on a chain."""

    def __init__(self, symbol: str, blockchain: str):
        self.symbol = symbol
        self.blockchain = blockchain
        super().__init__(f'Token "{symbol}" not found on {blockchain}')


TokenFetcher = Callable[[], Awaitable[tuple[list[Token], Optional[int]]]]


class TokenCacheStore:
    """File-backed, TTL based read-through cache of the token list."""

    def __init__(self, path: Path, clock: Callable[[], float] = time.time):
        self.path = Path(path)
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def load(self) -> Optional[TokenCache]:
        """Load the cache, or None if it is missing or unreadable."""
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return TokenCache.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Error loading token cache {self.path}: {e}")
            return None

    def save(self, tokens: list[Token], expires_at: Optional[int] = None) -> None:
        """Replace the cached token list.

        Args:
            tokens: Full token list
            expires_at: Expiry in epoch seconds, defaults to now + 7 days
        """
        now = self._now()
        cache = TokenCache(
            tokens=list(tokens),
            last_updated=datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
            expires_at=expires_at or now + CACHE_TTL_SECONDS,
        )

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                cache.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
            )
            logger.debug(f"Cached {len(cache.tokens)} tokens until {cache.expires_at}")
        except OSError as e:
            logger.error(f"Error saving token cache {self.path}: {e}")

    def clear(self) -> None:
        """Remove the cache file if present."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def is_expired(self, cache: TokenCache) -> bool:
        """A cache is expired only once now is strictly past expires_at."""
        return self._now() > cache.expires_at

    async def get_or_fetch(self, fetcher: TokenFetcher) -> list[Token]:
        """Return cached tokens, fetching and storing them on miss or expiry.

        Args:
            fetcher: Coroutine function returning ``(tokens, expires_at)``

        Returns:
            Token list
        """
        cache = self.load()
        if cache is not None and not self.is_expired(cache):
            return cache.tokens

        if cache is None:
            logger.info("No token cache, fetching token list")
        else:
            logger.info("Token cache expired, refreshing token list")

        tokens, expires_at = await fetcher()
        self.save(tokens, expires_at)
        return tokens

    def find_token(self, symbol: str, blockchain: str = "near") -> Optional[Token]:
        """Look up a token in the cache without fetching.

        Exact symbol match wins; otherwise the first token whose symbol
        contains ``symbol``. Both require the blockchain to match. All
        comparisons are case-insensitive.
        """
        cache = self.load()
        if cache is None or not cache.tokens:
            return None

        wanted_symbol = symbol.lower()
        wanted_chain = blockchain.lower()
        on_chain = [t for t in cache.tokens if t.blockchain.lower() == wanted_chain]

        for token in on_chain:
            if token.key == (wanted_symbol, wanted_chain):
                return token

        for token in on_chain:
            if wanted_symbol in token.symbol.lower():
                logger.debug(f"Partial match {symbol!r} -> {token.symbol} on {blockchain}")
                return token

        return None

    def require_token(self, symbol: str, blockchain: str = "near") -> Token:
        """Like find_token but raises TokenNotFoundError on a miss."""
        token = self.find_token(symbol, blockchain)
        if token is None:
            raise TokenNotFoundError(symbol, blockchain.lower())
        return token


def filter_tokens(
    tokens: Iterable[Token],
    blockchain: Optional[str] = None,
    symbol: Optional[str] = None,
) -> list[Token]:
    """Filter a token list by exact chain and symbol substring."""
    result = list(tokens)
    if blockchain:
        result = [t for t in result if t.blockchain.lower() == blockchain.lower()]
    if symbol:
        result = [t for t in result if symbol.lower() in t.symbol.lower()]
    return result
