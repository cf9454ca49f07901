from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import FavoriteCoin
from app.errors import FavoriteConflict, FavoriteNotFound


async def list_favorites(session: AsyncSession, user_id: int) -> list[FavoriteCoin]:
    result = await session.execute(
        select(FavoriteCoin).where(FavoriteCoin.user_id == user_id).order_by(FavoriteCoin.id)
    )
    return list(result.scalars().all())


async def add_favorite(
    session: AsyncSession,
    *,
    user_id: int,
    coin_name: str,
    symbol: str,
    slug: str,
) -> FavoriteCoin:
    existing = await session.execute(
        select(FavoriteCoin.id).where(
            FavoriteCoin.user_id == user_id,
            FavoriteCoin.symbol == symbol,
            FavoriteCoin.slug == slug,
        )
    )
    if existing.first() is not None:
        raise FavoriteConflict("Coin already added", details={"symbol": symbol, "slug": slug})

    row = FavoriteCoin(user_id=user_id, coin_name=coin_name, symbol=symbol, slug=slug)
    session.add(row)
    try:
        await session.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent insert of the same favorite
        await session.rollback()
        raise FavoriteConflict("Coin already added", details={"symbol": symbol, "slug": slug}) from exc
    await session.refresh(row)
    return row


async def remove_favorite(session: AsyncSession, *, user_id: int, symbol: str, slug: str) -> None:
    result = await session.execute(
        delete(FavoriteCoin).where(
            FavoriteCoin.user_id == user_id,
            FavoriteCoin.symbol == symbol,
            FavoriteCoin.slug == slug,
        )
    )
    if not result.rowcount:
        await session.rollback()
        raise FavoriteNotFound("Coin not found in favorites", details={"symbol": symbol, "slug": slug})
    await session.commit()
