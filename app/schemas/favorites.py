from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FavoriteAddRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    coin_name: Optional[str] = Field(default=None, alias="coinName")
    symbol: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)

    @field_validator("slug")
    @classmethod
    def lower_slug(cls, value: str) -> str:
        return value.lower()


class FavoriteRemoveRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    symbol: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)

    @field_validator("slug")
    @classmethod
    def lower_slug(cls, value: str) -> str:
        return value.lower()


class FavoriteRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    coin_name: str
    symbol: str
    slug: str
    created_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str
