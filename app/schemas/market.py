"""Pydantic models for the market-data JSON contracts."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class CoinIdentifier(BaseModel):
    """One entry of the provider's full coin id map (search reference data)."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    symbol: str
    slug: str
    rank: Optional[int] = None
    is_active: Optional[int] = None


class CoinSummary(BaseModel):
    """A ranked listing row merged with the logo from its info record."""

    id: int
    name: str
    slug: str
    symbol: str
    cmc_rank: Optional[int] = None
    price: Optional[float] = None
    percent_change_1h: Optional[float] = None
    percent_change_24h: Optional[float] = None
    percent_change_7d: Optional[float] = None
    volume_24h: Optional[float] = None
    market_cap: Optional[float] = None
    circulating_supply: Optional[float] = None
    logo: Optional[str] = None


class CoinDetail(BaseModel):
    """Info record merged with its quote; `stale` marks a favorite that no longer resolves."""

    id: Optional[int] = None
    name: str
    slug: str
    symbol: str
    logo: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    cmc_rank: Optional[int] = None
    max_supply: Optional[float] = None
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    price: Optional[float] = None
    market_cap: Optional[float] = None
    volume_24h: Optional[float] = None
    volume_change_24h: Optional[float] = None
    percent_change_1h: Optional[float] = None
    percent_change_24h: Optional[float] = None
    percent_change_7d: Optional[float] = None
    percent_change_30d: Optional[float] = None
    percent_change_90d: Optional[float] = None
    percent_change_365d: Optional[float] = None
    stale: bool = False


class PriceChart(BaseModel):
    labels: list[str]
    prices: list[float]


class CurrencyResponse(PriceChart):
    info: CoinDetail
