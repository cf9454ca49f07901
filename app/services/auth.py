"""Account signup/login, bcrypt password hashing and JWT bearer tokens."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import get_settings
from app.db.models import User
from app.errors import AlreadyRegistered, Forbidden, InvalidCredentials
from app.utils.time import utcnow

logger = logging.getLogger("coin_tracker.auth")


def hash_password(password: str) -> str:
    rounds = get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_token(user: User) -> str:
    s = get_settings()
    now = utcnow()
    claims: dict[str, Any] = {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(days=s.TOKEN_TTL_DAYS),
    }
    return jwt.encode(claims, s.JWT_SECRET, algorithm=s.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    s = get_settings()
    try:
        claims = jwt.decode(
            token,
            s.JWT_SECRET,
            algorithms=[s.JWT_ALGORITHM],
            options={"require": ["exp", "id"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise Forbidden("Invalid or expired token") from exc
    except jwt.InvalidTokenError as exc:
        logger.info("rejected bearer token | %s", exc)
        raise Forbidden("Invalid or expired token") from exc
    return claims


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalars().first()


async def signup(
    session: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
) -> tuple[User, str]:
    if await get_user_by_email(session, email) is not None:
        raise AlreadyRegistered("User already registered")

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password=hash_password(password),
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise AlreadyRegistered("User already registered") from exc
    await session.refresh(user)

    logger.info("user registered | id=%s", user.id)
    return user, create_token(user)


async def login(session: AsyncSession, *, email: str, password: str) -> tuple[User, str]:
    user = await get_user_by_email(session, email)
    if user is None or not verify_password(password, user.password):
        raise InvalidCredentials("Invalid email or password")
    return user, create_token(user)
