from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.config.settings import get_settings
from app.errors import ValidationFailed
from app.schemas.market import CoinIdentifier, CoinSummary, CurrencyResponse
from app.services.aggregation import gather_all, get_coin_detail, get_top_ranked
from app.services.chart import CHART_WINDOWS, DEFAULT_CHART_DAYS, build_price_chart
from app.services.coingecko import CoinGeckoClient, get_coingecko_client
from app.services.coinmarketcap import CoinMarketCapClient, get_cmc_client
from app.services.reference_cache import ReferenceCache, get_reference_cache

router = APIRouter(tags=["market"])


@router.get("/coin-api", response_model=list[CoinSummary])
async def top_coins(cmc: CoinMarketCapClient = Depends(get_cmc_client)):
    """Top ranked coins with logos; [] when the provider is unavailable."""
    return await get_top_ranked(cmc, n=get_settings().TOP_N)


@router.get("/search", response_model=list[CoinIdentifier])
async def search_coins(
    q: str = "",
    cache: ReferenceCache = Depends(get_reference_cache),
):
    """
    Case-insensitive substring match on name or symbol.
    Example: /search?q=btc
    """
    return await cache.search(q)


@router.get("/currency/{slug}", response_model=CurrencyResponse)
async def currency_detail(
    slug: str,
    days: int = Query(DEFAULT_CHART_DAYS),
    cmc: CoinMarketCapClient = Depends(get_cmc_client),
    gecko: CoinGeckoClient = Depends(get_coingecko_client),
):
    """
    Price chart plus merged coin info.
    Example: /currency/bitcoin?days=7
    """
    if days not in CHART_WINDOWS:
        raise ValidationFailed(
            f"Unsupported days value '{days}'",
            details={"supported": list(CHART_WINDOWS)},
        )

    samples, info = await gather_all(
        gecko.market_chart(slug.lower(), days),
        get_coin_detail(cmc, slug),
    )
    chart = build_price_chart(samples, days)
    return CurrencyResponse(labels=chart.labels, prices=chart.prices, info=info)
