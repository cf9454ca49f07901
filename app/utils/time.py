from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def from_epoch_ms(ts_ms: float) -> datetime:
    """Epoch milliseconds (CoinGecko's timestamp unit) -> aware UTC datetime."""
    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc)
