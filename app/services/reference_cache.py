"""
TTL cache over the provider's full coin id map, used by search.

The cache is read-mostly and shared by every request in the process.
Refreshes are single-flight: callers arriving while a refresh is running
wait on the lock and then reuse its result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Sequence

from pydantic import ValidationError

from app.config.settings import get_settings
from app.schemas.market import CoinIdentifier
from app.services.coinmarketcap import get_cmc_client

logger = logging.getLogger("coin_tracker.reference_cache")

Fetcher = Callable[[], Awaitable[list[dict[str, Any]]]]
Clock = Callable[[], float]


def _parse_entries(raw: list[dict[str, Any]]) -> tuple[CoinIdentifier, ...]:
    entries = []
    for item in raw:
        try:
            entries.append(CoinIdentifier.model_validate(item))
        except ValidationError:
            logger.debug("skipping malformed id map entry: %r", item)
    return tuple(entries)


class ReferenceCache:
    def __init__(
        self,
        fetcher: Fetcher,
        *,
        ttl_seconds: float = 3600,
        clock: Clock = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: tuple[CoinIdentifier, ...] = ()
        self._fetched_at: float | None = None
        self._lock = asyncio.Lock()

    def _is_fresh(self) -> bool:
        if not self._entries or self._fetched_at is None:
            return False
        return self._clock() - self._fetched_at < self.ttl_seconds

    async def get_all_identifiers(self) -> Sequence[CoinIdentifier]:
        if self._is_fresh():
            return self._entries

        async with self._lock:
            # another caller may have refreshed while we waited
            if self._is_fresh():
                return self._entries

            try:
                raw = await self._fetcher()
            except Exception:
                if self._entries:
                    logger.warning(
                        "reference refresh failed; serving %d stale entries", len(self._entries),
                        exc_info=True,
                    )
                    return self._entries
                raise

            entries = _parse_entries(raw)
            self._entries, self._fetched_at = entries, self._clock()
            logger.info("reference cache refreshed | entries=%d", len(entries))
            return self._entries

    async def search(self, query: str | None) -> list[CoinIdentifier]:
        entries = await self.get_all_identifiers()
        q = (query or "").strip().lower()
        if not q:
            return list(entries)
        return [c for c in entries if q in c.name.lower() or q in c.symbol.lower()]

    def invalidate(self) -> None:
        self._entries = ()
        self._fetched_at = None

    def status(self) -> dict[str, Any]:
        age = None if self._fetched_at is None else self._clock() - self._fetched_at
        return {
            "entries": len(self._entries),
            "age_s": None if age is None else round(age, 3),
            "ttl_s": self.ttl_seconds,
            "fresh": self._is_fresh(),
        }


_reference_cache: ReferenceCache | None = None


def get_reference_cache() -> ReferenceCache:
    global _reference_cache
    if _reference_cache is None:
        async def _fetch_id_map() -> list[dict[str, Any]]:
            return await get_cmc_client().id_map()

        _reference_cache = ReferenceCache(
            _fetch_id_map,
            ttl_seconds=get_settings().REFERENCE_CACHE_TTL_SECONDS,
        )
    return _reference_cache
