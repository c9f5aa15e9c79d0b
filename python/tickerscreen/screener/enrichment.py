"""Build instrument records from raw quotes and optional daily history."""

from __future__ import annotations

from typing import Optional

from loguru import logger

from . import constants
from . import indicators
from .exceptions import DataUnavailableError
from .market_data import HistoricalSeries, RawQuote
from .schemas import InstrumentRecord


def is_known_etf(symbol: str, quote_type: str | None = None) -> bool:
    if quote_type and quote_type.upper() == "ETF":
        return True
    return len(symbol) <= 4 and symbol in constants.KNOWN_ETFS


def enrich_quote(
    quote: RawQuote, history: Optional[HistoricalSeries] = None
) -> InstrumentRecord:
    """Derive indicators for one symbol.

    Raises:
        DataUnavailableError: the quote has no positive current price.

    Fields that need history stay ``None`` (trends ``unknown``) when
    ``history`` is missing or empty.
    """
    close = quote.current
    if close is None or close <= 0:
        raise DataUnavailableError(
            f"No usable quote for {quote.symbol}", symbol=quote.symbol
        )

    closes: tuple[float, ...] = history.closes if history else ()
    volumes: tuple[float, ...] = history.volumes if history else ()
    has_history = bool(closes)

    sma_values = {period: indicators.sma(closes, period) for period in constants.SMA_PERIODS}
    trend_daily = indicators.classify_trend(closes)
    trend_weekly = indicators.classify_weekly_trend(closes)

    week52_high, week52_low = indicators.range_extremes(closes)

    volume = quote.volume
    if volume is None and volumes:
        volume = volumes[-1]
    avg_volume = indicators.sma(volumes, constants.AVG_VOLUME_PERIOD)

    prev_close = quote.previous_close
    change = close - prev_close if prev_close is not None else None
    is_etf = is_known_etf(quote.symbol, quote.quote_type)

    if not has_history:
        logger.debug(
            "Built quote-only record for {symbol}; history fields left empty",
            symbol=quote.symbol,
        )

    return InstrumentRecord(
        symbol=quote.symbol,
        name=quote.name or quote.symbol,
        close=close,
        open=quote.open,
        high=quote.high,
        low=quote.low,
        prev_close=prev_close,
        change=change,
        change_percent=indicators.percent_change(close, prev_close),
        volume=volume,
        avg_volume=avg_volume,
        volume_ratio=indicators.safe_ratio(volume, avg_volume),
        volume_contraction=indicators.volume_contraction(volume, avg_volume),
        week52_high=week52_high,
        week52_low=week52_low,
        week52_range_days=len(closes) if has_history else None,
        week52_full_window=(
            len(closes) >= constants.WEEK52_TRADING_DAYS if has_history else None
        ),
        near_52w_high=indicators.near_high(close, week52_high),
        near_52w_low=indicators.near_low(close, week52_low),
        sma20=sma_values[20],
        sma50=sma_values[50],
        sma200=sma_values[200],
        trend_daily=trend_daily,
        trend_weekly=trend_weekly,
        trend_alignment=indicators.trend_alignment(trend_daily, trend_weekly),
        market_cap=quote.market_cap,
        currency=quote.currency or constants.DEFAULT_CURRENCY,
        is_etf=is_etf,
        asset_type="equity",
        tradable_on_t212_cfd=True,
        has_history=has_history,
    )
