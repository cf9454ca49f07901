"""
Merge CoinMarketCap listings, info records and quotes into coin records.

The provider keys its responses inconsistently:

- listings/latest is a ranked list; rows are joined to info records by slug.
- info and quotes/latest are mappings keyed by the provider-internal id;
  info records are joined to quotes by that id.

Both joins go through explicit indexes (SlugIndex, IdIndex) built from the
records themselves rather than from the response keys.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Iterable, Mapping, Protocol, Sequence

from app.errors import CoinNotFound, UpstreamUnavailable
from app.schemas.market import CoinDetail, CoinSummary

logger = logging.getLogger("coin_tracker.aggregation")

Record = Mapping[str, Any]
SlugIndex = dict[str, Record]
IdIndex = dict[int, Record]


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables concurrently; wait for every one, then raise the first failure."""
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class MarketDataSource(Protocol):
    async def listings_latest(self, limit: int = 100) -> list[dict[str, Any]]: ...

    async def info_by_slugs(self, slugs: Iterable[str]) -> dict[str, dict[str, Any]]: ...

    async def quotes_by_slugs(self, slugs: Iterable[str]) -> dict[str, dict[str, Any]]: ...


class FavoriteLike(Protocol):
    coin_name: str
    symbol: str
    slug: str


# ----------------------------
# Indexes
# ----------------------------
def index_by_slug(records: Iterable[Record]) -> SlugIndex:
    return {r["slug"]: r for r in records if r.get("slug")}


def index_by_id(records: Iterable[Record]) -> IdIndex:
    out: IdIndex = {}
    for r in records:
        try:
            out[int(r["id"])] = r
        except (KeyError, TypeError, ValueError):
            continue
    return out


# ----------------------------
# Field extraction
# ----------------------------
def _usd(record: Record | None) -> Record:
    if not record:
        return {}
    return (record.get("quote") or {}).get("USD") or {}


def _website(info: Record) -> str | None:
    sites = (info.get("urls") or {}).get("website") or []
    return sites[0] if sites else None


def summary_from_listing(listing: Record, info: Record | None) -> CoinSummary:
    usd = _usd(listing)
    return CoinSummary(
        id=listing["id"],
        name=listing["name"],
        slug=listing["slug"],
        symbol=listing["symbol"],
        cmc_rank=listing.get("cmc_rank"),
        price=usd.get("price"),
        percent_change_1h=usd.get("percent_change_1h"),
        percent_change_24h=usd.get("percent_change_24h"),
        percent_change_7d=usd.get("percent_change_7d"),
        volume_24h=usd.get("volume_24h"),
        market_cap=usd.get("market_cap"),
        circulating_supply=listing.get("circulating_supply"),
        logo=(info or {}).get("logo") or None,
    )


def detail_from_info(info: Record, quote: Record | None) -> CoinDetail:
    usd = _usd(quote)
    q = quote or {}
    return CoinDetail(
        id=info.get("id"),
        name=info["name"],
        slug=info["slug"],
        symbol=info["symbol"],
        logo=info.get("logo") or None,
        website=_website(info),
        description=info.get("description"),
        cmc_rank=q.get("cmc_rank"),
        max_supply=q.get("max_supply"),
        circulating_supply=q.get("circulating_supply"),
        total_supply=q.get("total_supply"),
        price=usd.get("price"),
        market_cap=usd.get("market_cap"),
        volume_24h=usd.get("volume_24h"),
        volume_change_24h=usd.get("volume_change_24h"),
        percent_change_1h=usd.get("percent_change_1h"),
        percent_change_24h=usd.get("percent_change_24h"),
        percent_change_7d=usd.get("percent_change_7d"),
        percent_change_30d=usd.get("percent_change_30d"),
        percent_change_90d=usd.get("percent_change_90d"),
        percent_change_365d=usd.get("percent_change_365d"),
    )


def _quote_for(info: Record, quotes: IdIndex) -> Record | None:
    try:
        return quotes.get(int(info["id"]))
    except (KeyError, TypeError, ValueError):
        return None


def stale_detail(favorite: FavoriteLike) -> CoinDetail:
    return CoinDetail(
        name=favorite.coin_name,
        slug=favorite.slug,
        symbol=favorite.symbol,
        stale=True,
    )


# ----------------------------
# Top-N
# ----------------------------
def merge_listings_with_info(
    listings: Sequence[Record],
    info_by_id: Mapping[str, Record],
) -> list[CoinSummary]:
    """Attach logos to listings, keeping listing order. Unmatched coins get logo=None."""
    info_by_slug = index_by_slug(info_by_id.values())
    return [summary_from_listing(row, info_by_slug.get(row["slug"])) for row in listings]


async def get_top_ranked(source: MarketDataSource, n: int = 100) -> list[CoinSummary]:
    """
    Top-n coins with logos. Any upstream or payload error degrades to [],
    never to a partial merge.
    """
    try:
        listings = await source.listings_latest(limit=n)
        if not listings:
            return []
        info = await source.info_by_slugs(row["slug"] for row in listings)
        return merge_listings_with_info(listings, info)
    except UpstreamUnavailable as exc:
        logger.error("top-ranked fetch failed | %s", exc.message)
        return []
    except (KeyError, TypeError, ValueError):
        logger.exception("top-ranked merge failed on malformed payload")
        return []


# ----------------------------
# Single coin
# ----------------------------
def _sole_value(data: Mapping[str, Record], slug: str) -> Record:
    if not data:
        raise CoinNotFound(f"Unknown coin '{slug}'")
    if len(data) > 1:
        logger.warning("expected one record for slug=%s, got %d", slug, len(data))
    return next(iter(data.values()))


async def get_coin_detail(source: MarketDataSource, slug: str) -> CoinDetail:
    slug = slug.strip().lower()
    try:
        info_data, quote_data = await gather_all(
            source.info_by_slugs([slug]),
            source.quotes_by_slugs([slug]),
        )
    except UpstreamUnavailable as exc:
        if exc.upstream_status in (400, 404):
            raise CoinNotFound(f"Unknown coin '{slug}'") from exc
        raise

    info = _sole_value(info_data, slug)
    quote = _quote_for(info, index_by_id(quote_data.values()))
    return detail_from_info(info, quote)


# ----------------------------
# Favorites
# ----------------------------
def merge_favorites(
    favorites: Sequence[FavoriteLike],
    info_by_id: Mapping[str, Record],
    quotes_by_id: Mapping[str, Record],
) -> list[CoinDetail]:
    """
    favorite -> info by slug, info -> quote by id. Output follows favorites order;
    a favorite whose slug no longer resolves is returned with stale=True.
    """
    info_by_slug = index_by_slug(info_by_id.values())
    quote_index = index_by_id(quotes_by_id.values())

    merged: list[CoinDetail] = []
    seen: set[str] = set()
    for fav in favorites:
        if fav.slug in seen:
            continue
        seen.add(fav.slug)

        info = info_by_slug.get(fav.slug)
        if info is None:
            logger.info("favorite no longer resolves upstream | slug=%s", fav.slug)
            merged.append(stale_detail(fav))
            continue
        merged.append(detail_from_info(info, _quote_for(info, quote_index)))
    return merged


async def get_favorite_details(
    source: MarketDataSource,
    favorites: Sequence[FavoriteLike],
) -> list[CoinDetail]:
    if not favorites:
        return []

    slugs = [f.slug for f in favorites]
    try:
        info_data, quote_data = await gather_all(
            source.info_by_slugs(slugs),
            source.quotes_by_slugs(slugs),
        )
    except UpstreamUnavailable as exc:
        # the provider rejects the whole batch when none of the slugs resolve
        if exc.upstream_status not in (400, 404):
            raise
        logger.info("no favorite resolves upstream | slugs=%s", slugs)
        info_data, quote_data = {}, {}
    return merge_favorites(favorites, info_data, quote_data)
