"""Helpers for interacting with the public CoinGecko API."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from app.config.settings import get_settings
from app.errors import CoinNotFound, UpstreamUnavailable

logger = logging.getLogger("coin_tracker.coingecko")

PROVIDER = "coingecko"


class CoinGeckoClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def market_chart(
        self,
        coin_id: str,
        days: int,
        vs_currency: str = "usd",
    ) -> list[tuple[float, float]]:
        """Return (timestamp_ms, price) samples for the lookback window."""

        url = f"{self.base_url}/coins/{quote(coin_id, safe='')}/market_chart"
        params = {"vs_currency": vs_currency, "days": str(days)}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status == 404:
                raise CoinNotFound(f"Unknown coin '{coin_id}'") from exc
            logger.warning("CoinGecko market_chart failed | coin=%s | status=%s", coin_id, status)
            raise UpstreamUnavailable(
                PROVIDER, "Failed to fetch chart data", upstream_status=status
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("CoinGecko market_chart unreachable | coin=%s | %s", coin_id, exc)
            raise UpstreamUnavailable(PROVIDER, "Unable to reach CoinGecko") from exc

        try:
            return [(float(ts), float(price)) for ts, price in body["prices"]]
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable(PROVIDER, "Malformed CoinGecko market_chart payload") from exc


def get_coingecko_client() -> CoinGeckoClient:
    s = get_settings()
    return CoinGeckoClient(s.COINGECKO_BASE_URL, timeout=s.HTTP_TIMEOUT_SECONDS)
