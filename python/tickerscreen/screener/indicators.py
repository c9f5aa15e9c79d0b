"""Technical indicators over oldest-first daily series."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from . import constants
from .schemas import AlignmentLabel, TrendLabel


def safe_ratio(numerator: float | None, denominator: float | None) -> float | None:
    if numerator is None or denominator is None:
        return None
    if denominator == 0:
        return None
    return numerator / denominator


def percent_change(current: float | None, previous: float | None) -> float | None:
    """Percent change rounded to two decimals, ``None`` without a base."""
    ratio = safe_ratio(
        None if current is None or previous is None else current - previous,
        previous,
    )
    if ratio is None:
        return None
    return round(ratio * 100.0, 2)


def sma(series: Sequence[float], period: int) -> float | None:
    """Mean of the most recent ``period`` values, ``None`` if too short."""
    if period <= 0 or len(series) < period:
        return None
    return float(pd.Series(series[-period:], dtype="float64").mean())


def classify_trend(
    series: Sequence[float], period: int = constants.TREND_PERIOD
) -> TrendLabel:
    """Compare the latest 5-point mean with the 5-point mean ``period`` bars back."""
    window = constants.TREND_WINDOW
    if len(series) < period + window:
        return "unknown"
    recent = sma(series, window)
    baseline = sma(series[: len(series) - period], window)
    if recent is None or baseline is None:
        return "unknown"
    if recent > baseline * constants.TREND_UP_RATIO:
        return "up"
    if recent < baseline * constants.TREND_DOWN_RATIO:
        return "down"
    return "sideways"


def weekly_series(series: Sequence[float]) -> list[float]:
    """Every fifth daily point, starting from the oldest."""
    return list(series[:: constants.WEEKLY_STRIDE])


def classify_weekly_trend(series: Sequence[float]) -> TrendLabel:
    if len(series) < constants.WEEKLY_MIN_POINTS:
        return "unknown"
    return classify_trend(weekly_series(series), period=constants.WEEKLY_TREND_PERIOD)


def trend_alignment(daily: TrendLabel, weekly: TrendLabel) -> AlignmentLabel:
    if daily == "up" and weekly == "up":
        return "bullish"
    if daily == "down" and weekly == "down":
        return "bearish"
    return "mixed"


def range_extremes(series: Sequence[float]) -> tuple[float | None, float | None]:
    """High and low over the whole series, which may span less than a year."""
    if not series:
        return None, None
    values = pd.Series(series, dtype="float64")
    return float(values.max()), float(values.min())


def near_high(close: float | None, high: float | None) -> bool | None:
    if close is None or high is None:
        return None
    return close >= high * constants.NEAR_HIGH_RATIO


def near_low(close: float | None, low: float | None) -> bool | None:
    if close is None or low is None:
        return None
    return close <= low * constants.NEAR_LOW_RATIO


def volume_contraction(
    volume: float | None, avg_volume: float | None
) -> bool | None:
    if volume is None or avg_volume is None:
        return None
    return volume < avg_volume * constants.VOLUME_CONTRACTION_RATIO
