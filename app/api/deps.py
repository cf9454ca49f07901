from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.errors import Forbidden, Unauthorized
from app.services.auth import decode_token

# auto_error=False so a missing header maps to 401 rather than FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    first_name: str | None
    last_name: str | None
    email: str | None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "CurrentUser":
        try:
            user_id = int(claims["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise Forbidden("Invalid or expired token") from exc
        return cls(
            id=user_id,
            first_name=claims.get("first_name"),
            last_name=claims.get("last_name"),
            email=claims.get("email"),
        )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token required")
    return CurrentUser.from_claims(decode_token(credentials.credentials))
