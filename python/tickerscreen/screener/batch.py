"""Sequential, rate-paced fetching and enrichment of a symbol universe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from loguru import logger

from . import constants
from .enrichment import enrich_quote
from .exceptions import DataUnavailableError
from .market_data import HistoricalSeries, QuoteSource
from .schemas import InstrumentRecord
from .throttle import FixedIntervalRateLimiter, RateLimiter


@dataclass(frozen=True)
class BatchOutcome:
    """Records that enriched successfully, plus universe bookkeeping."""

    records: list[InstrumentRecord] = field(default_factory=list)
    requested_size: int = 0
    attempted: int = 0
    truncation_note: str | None = None


def normalize_universe(symbols: Iterable[str]) -> list[str]:
    """Strip and upper-case symbols, dropping blanks and repeats."""
    seen: set[str] = set()
    normalized: list[str] = []
    for raw in symbols:
        symbol = raw.strip().upper()
        if not symbol or symbol in seen:
            continue
        seen.add(symbol)
        normalized.append(symbol)
    return normalized


def truncate_universe(symbols: list[str], cap: int) -> tuple[list[str], str | None]:
    """Keep the first ``cap`` distinct symbols and describe what was dropped."""
    if len(symbols) <= cap:
        return symbols, None
    note = (
        f"Universe truncated from {len(symbols)} to {cap} symbols to respect "
        f"the provider rate limit; {len(symbols) - cap} symbol(s) were not screened."
    )
    return symbols[:cap], note


class BatchOrchestrator:
    """Fetch and enrich one symbol at a time under a static call budget."""

    def __init__(
        self,
        source: QuoteSource,
        limiter: Optional[RateLimiter] = None,
        max_universe_size: int = constants.MAX_UNIVERSE_SIZE,
        rate_limit_per_minute: int = constants.PROVIDER_RATE_LIMIT_PER_MINUTE,
        history_lookback_days: int = constants.HISTORY_LOOKBACK_DAYS,
    ) -> None:
        self._source = source
        self._limiter = limiter or FixedIntervalRateLimiter.from_budget(
            rate_limit_per_minute, source.calls_per_symbol
        )
        self._max_universe_size = max_universe_size
        self._history_lookback_days = history_lookback_days

    @property
    def max_universe_size(self) -> int:
        return self._max_universe_size

    async def run(self, symbols: list[str]) -> BatchOutcome:
        requested_size = len(symbols)
        screened, note = truncate_universe(
            normalize_universe(symbols), self._max_universe_size
        )
        if note:
            logger.warning(note)
        logger.info(
            "Screening {count} symbols via {provider}",
            count=len(screened),
            provider=self._source.name,
        )

        records: list[InstrumentRecord] = []
        for symbol in screened:
            await self._limiter.wait()
            record = await self._fetch_one(symbol)
            if record is not None:
                records.append(record)

        logger.info(
            "Got data for {valid}/{attempted} symbols",
            valid=len(records),
            attempted=len(screened),
        )
        return BatchOutcome(
            records=records,
            requested_size=requested_size,
            attempted=len(screened),
            truncation_note=note,
        )

    async def _fetch_one(self, symbol: str) -> InstrumentRecord | None:
        try:
            quote = await self._source.fetch_quote(symbol)
            if quote is None:
                return None
            history = await self._fetch_history(symbol)
            return enrich_quote(quote, history)
        except DataUnavailableError as exc:
            logger.warning(
                "Skipping {symbol}: {error}", symbol=symbol, error=exc.message
            )
        except Exception as exc:
            logger.warning(
                "Unexpected error for {symbol}: {error}", symbol=symbol, error=exc
            )
        return None

    async def _fetch_history(self, symbol: str) -> HistoricalSeries | None:
        if not self._source.supports_history:
            return None
        try:
            return await self._source.fetch_history(
                symbol,
                lookback_days=self._history_lookback_days,
                resolution=constants.HISTORY_RESOLUTION,
            )
        except Exception as exc:
            logger.warning(
                "Failed to fetch history for {symbol}, using quote only: {error}",
                symbol=symbol,
                error=exc,
            )
            return None
