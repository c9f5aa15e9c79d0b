"""Quote sources feeding the ticker screener."""

from __future__ import annotations

import asyncio
import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import pandas as pd
import yfinance as yf
from loguru import logger

from . import constants
from .config import ScreenerSettings
from .exceptions import DataUnavailableError


@dataclass(frozen=True)
class RawQuote:
    """Current quote fields as reported by a provider."""

    symbol: str
    current: float | None
    open: float | None
    high: float | None
    low: float | None
    previous_close: float | None
    volume: float | None = None
    name: str | None = None
    currency: str | None = None
    market_cap: float | None = None
    quote_type: str | None = None


@dataclass(frozen=True)
class HistoricalSeries:
    """Daily closes and volumes for one symbol, oldest first."""

    symbol: str
    closes: tuple[float, ...]
    volumes: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.closes)

    @classmethod
    def from_frame(cls, symbol: str, df: pd.DataFrame) -> "HistoricalSeries":
        """Build from a frame with ``Close`` and ``Volume`` columns."""
        if df is None or df.empty or "Close" not in df.columns:
            return cls(symbol=symbol, closes=(), volumes=())
        frame = df.sort_index()
        if "Volume" in frame.columns:
            frame = frame[["Close", "Volume"]].dropna()
            volumes = tuple(float(value) for value in frame["Volume"])
        else:
            frame = frame[["Close"]].dropna()
            volumes = ()
        closes = tuple(float(value) for value in frame["Close"])
        return cls(symbol=symbol, closes=closes, volumes=volumes)


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


class QuoteSource(ABC):
    """Supplies quotes and, when capable, daily history for a symbol."""

    name: str = "abstract"

    @property
    @abstractmethod
    def supports_history(self) -> bool:
        """Whether :meth:`fetch_history` can return data."""

    @property
    def calls_per_symbol(self) -> int:
        return 2 if self.supports_history else 1

    @abstractmethod
    async def fetch_quote(self, symbol: str) -> Optional[RawQuote]:
        """Return the quote, ``None`` for "no data", or raise DataUnavailableError."""

    async def fetch_history(
        self,
        symbol: str,
        lookback_days: int = constants.HISTORY_LOOKBACK_DAYS,
        resolution: str = constants.HISTORY_RESOLUTION,
    ) -> Optional[HistoricalSeries]:
        """Return daily history, or ``None`` when unavailable."""
        return None


class FinnhubQuoteSource(QuoteSource):
    """Finnhub REST adapter: ``/quote`` plus optional ``/stock/candle``."""

    name = "finnhub"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://finnhub.io/api/v1",
        include_history: bool = False,
        timeout_s: float = constants.HTTP_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._include_history = include_history
        self._timeout_s = timeout_s
        self._transport = transport

    @property
    def supports_history(self) -> bool:
        return self._include_history

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_s,
            headers={"X-Finnhub-Token": self._api_key},
            transport=self._transport,
        )

    async def _get_json(self, symbol: str, path: str, params: dict) -> Any:
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            raise DataUnavailableError(
                f"Finnhub request {path} failed for {symbol}: {exc}",
                symbol=symbol,
                provider_name=self.name,
            ) from exc
        except ValueError as exc:
            raise DataUnavailableError(
                f"Finnhub returned malformed JSON for {symbol}",
                symbol=symbol,
                provider_name=self.name,
            ) from exc

    async def fetch_quote(self, symbol: str) -> Optional[RawQuote]:
        payload = await self._get_json(symbol, "/quote", {"symbol": symbol})
        if not isinstance(payload, dict):
            raise DataUnavailableError(
                f"Unexpected quote payload for {symbol}",
                symbol=symbol,
                provider_name=self.name,
            )
        current = _as_float(payload.get("c"))
        if not current:
            logger.info("No data for {symbol}", symbol=symbol)
            return None
        return RawQuote(
            symbol=symbol,
            current=current,
            open=_as_float(payload.get("o")),
            high=_as_float(payload.get("h")),
            low=_as_float(payload.get("l")),
            previous_close=_as_float(payload.get("pc")),
        )

    async def fetch_history(
        self,
        symbol: str,
        lookback_days: int = constants.HISTORY_LOOKBACK_DAYS,
        resolution: str = constants.HISTORY_RESOLUTION,
    ) -> Optional[HistoricalSeries]:
        if not self._include_history:
            return None
        now = int(time.time())
        params = {
            "symbol": symbol,
            "resolution": resolution,
            "from": now - lookback_days * 86400,
            "to": now,
        }
        try:
            payload = await self._get_json(symbol, "/stock/candle", params)
        except DataUnavailableError as exc:
            logger.debug(
                "History unavailable for {symbol}: {error}",
                symbol=symbol,
                error=exc.message,
            )
            return None
        if not isinstance(payload, dict) or payload.get("s") != "ok":
            return None
        closes = payload.get("c") or []
        volumes = payload.get("v") or []
        if len(volumes) != len(closes):
            volumes = []
        return HistoricalSeries(
            symbol=symbol,
            closes=tuple(float(value) for value in closes),
            volumes=tuple(float(value) for value in volumes),
        )


_YF_INTERVALS: dict[str, str] = {"D": "1d", "W": "1wk", "M": "1mo"}


class YFinanceQuoteSource(QuoteSource):
    """Yahoo Finance adapter; blocking yfinance calls run in worker threads."""

    name = "yfinance"

    def __init__(self, include_history: bool = True) -> None:
        self._include_history = include_history

    @property
    def supports_history(self) -> bool:
        return self._include_history

    async def fetch_quote(self, symbol: str) -> Optional[RawQuote]:
        return await asyncio.to_thread(self._fetch_quote_sync, symbol)

    def _fetch_quote_sync(self, symbol: str) -> Optional[RawQuote]:
        try:
            fast_info = yf.Ticker(symbol).fast_info
            current = _as_float(fast_info["last_price"])
            fields = {
                "open": _as_float(fast_info["open"]),
                "high": _as_float(fast_info["day_high"]),
                "low": _as_float(fast_info["day_low"]),
                "previous_close": _as_float(fast_info["previous_close"]),
                "volume": _as_float(fast_info["last_volume"]),
                "market_cap": _as_float(fast_info["market_cap"]),
            }
            currency = fast_info["currency"]
            quote_type = fast_info["quote_type"]
        except Exception as exc:
            raise DataUnavailableError(
                f"yfinance quote failed for {symbol}: {exc}",
                symbol=symbol,
                provider_name=self.name,
            ) from exc
        if not current:
            logger.info("No data for {symbol}", symbol=symbol)
            return None
        return RawQuote(
            symbol=symbol,
            current=current,
            currency=str(currency) if currency else None,
            quote_type=str(quote_type) if quote_type else None,
            **fields,
        )

    async def fetch_history(
        self,
        symbol: str,
        lookback_days: int = constants.HISTORY_LOOKBACK_DAYS,
        resolution: str = constants.HISTORY_RESOLUTION,
    ) -> Optional[HistoricalSeries]:
        if not self._include_history:
            return None
        return await asyncio.to_thread(
            self._fetch_history_sync, symbol, lookback_days, resolution
        )

    def _fetch_history_sync(
        self, symbol: str, lookback_days: int, resolution: str
    ) -> Optional[HistoricalSeries]:
        try:
            df = yf.Ticker(symbol).history(
                period=f"{lookback_days}d",
                interval=_YF_INTERVALS.get(resolution, "1d"),
                auto_adjust=True,
            )
        except Exception as exc:
            logger.warning(
                "Failed to fetch price history for {symbol}: {error}",
                symbol=symbol,
                error=exc,
            )
            return None
        if df is None or df.empty:
            return None
        return HistoricalSeries.from_frame(symbol, df)


def build_quote_source(settings: ScreenerSettings) -> QuoteSource:
    """Create the quote source named in the settings."""
    provider = settings.provider.lower()
    if provider == "finnhub":
        if not settings.finnhub_api_key:
            logger.warning("Finnhub selected without an API key; quotes will fail")
        return FinnhubQuoteSource(
            api_key=settings.finnhub_api_key or "",
            base_url=settings.finnhub_base_url,
            include_history=settings.include_history,
            timeout_s=settings.http_timeout_s,
        )
    if provider == "yfinance":
        return YFinanceQuoteSource(include_history=settings.include_history)
    raise ValueError(f"Unknown quote provider: {settings.provider}")
