from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.auth import AuthResponse, LoginRequest, SignupRequest, UserOut
from app.services import auth as auth_service

router = APIRouter(tags=["auth"])


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    user, token = await auth_service.signup(
        db,
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        password=payload.password,
    )
    return AuthResponse(
        message="User registered successfully",
        user=UserOut.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)) -> AuthResponse:
    user, token = await auth_service.login(db, email=payload.email, password=payload.password)
    return AuthResponse(
        message="User login successfully",
        user=UserOut.model_validate(user),
        token=token,
    )
