"""Tests for the batch orchestrator."""

import pytest

from tickerscreen.screener.batch import (
    BatchOrchestrator,
    normalize_universe,
    truncate_universe,
)
from tickerscreen.screener.market_data import HistoricalSeries
from tickerscreen.screener.throttle import NoopRateLimiter, RateLimiter

from .fakes import FakeQuoteSource, make_quote


class CountingLimiter(RateLimiter):
    def __init__(self) -> None:
        self.count = 0

    async def wait(self) -> None:
        self.count += 1


def _symbols(count: int) -> list[str]:
    return [f"S{index:02d}" for index in range(count)]


class TestTruncation:
    def test_over_cap_is_truncated_with_note(self):
        kept, note = truncate_universe(_symbols(30), 25)
        assert len(kept) == 25
        assert kept == _symbols(25)
        assert note is not None
        assert "30" in note and "25" in note

    def test_exactly_at_cap_has_no_note(self):
        kept, note = truncate_universe(_symbols(25), 25)
        assert len(kept) == 25
        assert note is None


@pytest.mark.asyncio
async def test_truncation_note_counts_distinct_symbols():
    symbols = _symbols(30)
    source = FakeQuoteSource(quotes={symbol: make_quote(symbol) for symbol in symbols})
    orchestrator = BatchOrchestrator(
        source, limiter=NoopRateLimiter(), max_universe_size=25
    )
    outcome = await orchestrator.run(symbols + symbols[:5])
    assert outcome.requested_size == 35
    assert outcome.attempted == 25
    assert "from 30 to 25" in outcome.truncation_note
    assert "5 symbol(s) were not screened" in outcome.truncation_note


def test_normalize_universe_dedupes_and_uppercases():
    assert normalize_universe([" aapl", "AAPL", "", "msft "]) == ["AAPL", "MSFT"]


@pytest.mark.asyncio
async def test_failures_are_isolated_and_order_is_kept():
    source = FakeQuoteSource(
        quotes={"AAA": make_quote("AAA"), "CCC": make_quote("CCC")},
        failing={"BBB"},
    )
    orchestrator = BatchOrchestrator(source, limiter=NoopRateLimiter())
    outcome = await orchestrator.run(["AAA", "BBB", "CCC", "DDD"])
    assert [record.symbol for record in outcome.records] == ["AAA", "CCC"]
    assert outcome.attempted == 4
    assert outcome.requested_size == 4
    assert outcome.truncation_note is None


@pytest.mark.asyncio
async def test_non_positive_quote_is_dropped():
    source = FakeQuoteSource(quotes={"AAA": make_quote("AAA", current=-5.0)})
    outcome = await BatchOrchestrator(source, limiter=NoopRateLimiter()).run(["AAA"])
    assert outcome.records == []
    assert outcome.attempted == 1


@pytest.mark.asyncio
async def test_truncated_symbols_are_not_fetched():
    symbols = _symbols(30)
    source = FakeQuoteSource(quotes={symbol: make_quote(symbol) for symbol in symbols})
    limiter = CountingLimiter()
    orchestrator = BatchOrchestrator(source, limiter=limiter, max_universe_size=25)
    outcome = await orchestrator.run(symbols)
    assert outcome.requested_size == 30
    assert outcome.attempted == 25
    assert outcome.truncation_note is not None
    assert len(source.calls) == 25
    assert limiter.count == 25


@pytest.mark.asyncio
async def test_history_is_fetched_when_supported():
    history = HistoricalSeries(symbol="AAA", closes=(100.0,) * 25, volumes=(10.0,) * 25)
    source = FakeQuoteSource(
        quotes={"AAA": make_quote("AAA")},
        histories={"AAA": history},
        history_enabled=True,
    )
    outcome = await BatchOrchestrator(source, limiter=NoopRateLimiter()).run(["AAA"])
    assert source.calls == [("quote", "AAA"), ("history", "AAA")]
    record = outcome.records[0]
    assert record.has_history is True
    assert record.sma20 == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_history_failure_keeps_quote_only_record():
    class BrokenHistory(FakeQuoteSource):
        async def fetch_history(self, symbol, lookback_days=365, resolution="D"):
            raise RuntimeError("candles down")

    source = BrokenHistory(quotes={"AAA": make_quote("AAA")}, history_enabled=True)
    outcome = await BatchOrchestrator(source, limiter=NoopRateLimiter()).run(["AAA"])
    assert len(outcome.records) == 1
    assert outcome.records[0].has_history is False


def test_default_limiter_uses_source_budget():
    source = FakeQuoteSource(quotes={}, history_enabled=True)
    orchestrator = BatchOrchestrator(source, rate_limit_per_minute=60)
    assert orchestrator._limiter.min_interval_s == pytest.approx(2.0)
