from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import CurrentUser, get_current_user
from app.db.session import get_db
from app.schemas.favorites import (
    FavoriteAddRequest,
    FavoriteRecord,
    FavoriteRemoveRequest,
    MessageResponse,
)
from app.schemas.market import CoinDetail
from app.services.aggregation import get_favorite_details
from app.services.coinmarketcap import CoinMarketCapClient, get_cmc_client
from app.services.favorites import add_favorite, list_favorites, remove_favorite

router = APIRouter(tags=["favorites"])


@router.get("/favorites", response_model=list[FavoriteRecord])
async def favorite_rows(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await list_favorites(db, user.id)


@router.get("/favorite", response_model=list[CoinDetail])
async def favorite_details(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cmc: CoinMarketCapClient = Depends(get_cmc_client),
):
    """All of the user's favorites with live info and quotes (two batched upstream calls)."""
    rows = await list_favorites(db, user.id)
    return await get_favorite_details(cmc, rows)


@router.post("/favorite/{name}", response_model=MessageResponse)
async def add_favorite_coin(
    name: str,
    payload: FavoriteAddRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await add_favorite(
        db,
        user_id=user.id,
        coin_name=payload.coin_name or name,
        symbol=payload.symbol,
        slug=payload.slug,
    )
    return MessageResponse(message="Coin added successfully")


@router.delete("/favorite/{name}", response_model=MessageResponse)
async def remove_favorite_coin(
    name: str,
    payload: FavoriteRemoveRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await remove_favorite(db, user_id=user.id, symbol=payload.symbol, slug=payload.slug)
    return MessageResponse(message="Coin removed successfully")
