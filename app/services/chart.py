from __future__ import annotations

import math
from typing import Sequence

from app.schemas.market import PriceChart
from app.utils.time import from_epoch_ms

# lookback windows the chart supports, in days
CHART_WINDOWS = (1, 7, 30, 90, 365)
DEFAULT_CHART_DAYS = 90

# keep the visible label count roughly constant regardless of series length
MAX_CHART_LABELS = 30


def format_label(ts_ms: float, days: int) -> str:
    """
    Clock time ("3:05 PM") for the 1-day window, calendar date ("Jan 5") otherwise.
    Timestamps are epoch milliseconds, rendered in UTC.
    """
    dt = from_epoch_ms(ts_ms)
    if days == 1:
        hour = dt.hour % 12 or 12
        suffix = "AM" if dt.hour < 12 else "PM"
        return f"{hour}:{dt.minute:02d} {suffix}"
    return f"{dt:%b} {dt.day}"


def label_step(sample_count: int, max_labels: int = MAX_CHART_LABELS) -> int:
    if sample_count <= max_labels:
        return 1
    return math.ceil(sample_count / max_labels)


def build_labels(
    timestamps: Sequence[float],
    days: int,
    max_labels: int = MAX_CHART_LABELS,
) -> list[str]:
    step = label_step(len(timestamps), max_labels)
    return [format_label(ts, days) if i % step == 0 else "" for i, ts in enumerate(timestamps)]


def build_price_chart(samples: Sequence[tuple[float, float]], days: int) -> PriceChart:
    timestamps = [ts for ts, _ in samples]
    prices = [price for _, price in samples]
    return PriceChart(labels=build_labels(timestamps, days), prices=prices)
