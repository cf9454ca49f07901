# app/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


def parse_csv(value: str | None, default: List[str]) -> List[str]:
    if not value:
        return default
    items = [x.strip() for x in value.split(",")]
    return [x for x in items if x]


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


@dataclass(frozen=True)
class Settings:
    DATABASE_URL: str
    CMC_API_KEY: str
    CMC_BASE_URL: str
    COINGECKO_BASE_URL: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    TOKEN_TTL_DAYS: int
    BCRYPT_ROUNDS: int
    REFERENCE_CACHE_TTL_SECONDS: int
    HTTP_TIMEOUT_SECONDS: float
    TOP_N: int
    CORS_ORIGINS: List[str]
    LOG_LEVEL: str
    LOG_FORMAT: str

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            DATABASE_URL=os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./coins.db"),
            CMC_API_KEY=os.getenv("CMC_API_KEY", ""),
            CMC_BASE_URL=os.getenv(
                "CMC_BASE_URL", "https://pro-api.coinmarketcap.com/v1/cryptocurrency"
            ),
            COINGECKO_BASE_URL=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"),
            JWT_SECRET=os.getenv("JWT_SECRET", "change_this_to_a_secure_random_string_in_production"),
            JWT_ALGORITHM=os.getenv("JWT_ALGORITHM", "HS256"),
            TOKEN_TTL_DAYS=parse_int(os.getenv("TOKEN_TTL_DAYS"), 20),
            BCRYPT_ROUNDS=parse_int(os.getenv("BCRYPT_ROUNDS"), 10),
            REFERENCE_CACHE_TTL_SECONDS=parse_int(os.getenv("REFERENCE_CACHE_TTL_SECONDS"), 3600),
            HTTP_TIMEOUT_SECONDS=parse_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 10.0),
            TOP_N=parse_int(os.getenv("TOP_N"), 100),
            CORS_ORIGINS=parse_csv(os.getenv("CORS_ORIGINS"), ["*"]),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            LOG_FORMAT=os.getenv("LOG_FORMAT", "text").lower(),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
