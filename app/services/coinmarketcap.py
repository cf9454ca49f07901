"""Async client for the CoinMarketCap pro API (listings, info, quotes, id map)."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from app.config.settings import get_settings
from app.errors import UpstreamUnavailable

logger = logging.getLogger("coin_tracker.coinmarketcap")

PROVIDER = "coinmarketcap"


def join_slugs(slugs: Iterable[str]) -> str:
    """Comma-joined, de-duplicated slug list in first-seen order."""
    seen: dict[str, None] = {}
    for slug in slugs:
        if slug:
            seen.setdefault(slug, None)
    return ",".join(seen)


class CoinMarketCapClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"X-CMC_PRO_API_KEY": self.api_key, "Accept": "application/json"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("CoinMarketCap %s failed | status=%s", path, status)
            raise UpstreamUnavailable(
                PROVIDER, f"CoinMarketCap returned {status} for {path}", upstream_status=status
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("CoinMarketCap %s unreachable | %s", path, exc)
            raise UpstreamUnavailable(PROVIDER, f"Unable to reach CoinMarketCap ({path})") from exc

        if not isinstance(body, dict) or "data" not in body:
            raise UpstreamUnavailable(PROVIDER, f"Malformed CoinMarketCap payload for {path}")
        return body["data"]

    async def listings_latest(self, limit: int = 100) -> list[dict[str, Any]]:
        """Top `limit` coins by rank, each carrying `slug` and a `quote.USD` block."""
        data = await self._get("listings/latest", {"limit": limit})
        return list(data or [])

    async def info_by_slugs(self, slugs: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Info records (logo, urls, description) keyed by provider-internal id."""
        data = await self._get("info", {"slug": join_slugs(slugs), "skip_invalid": "true"})
        return dict(data or {})

    async def quotes_by_slugs(self, slugs: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Latest quotes keyed by provider-internal id."""
        data = await self._get(
            "quotes/latest", {"slug": join_slugs(slugs), "skip_invalid": "true"}
        )
        return dict(data or {})

    async def id_map(self) -> list[dict[str, Any]]:
        """Every coin the provider knows about (~10k entries)."""
        data = await self._get("map")
        return list(data or [])


def get_cmc_client() -> CoinMarketCapClient:
    s = get_settings()
    return CoinMarketCapClient(s.CMC_API_KEY, s.CMC_BASE_URL, timeout=s.HTTP_TIMEOUT_SECONDS)
