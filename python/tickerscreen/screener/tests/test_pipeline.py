"""End-to-end tests for the screening pipeline."""

import pytest

from tickerscreen.screener.batch import BatchOrchestrator
from tickerscreen.screener.conditions import ConditionEvaluator
from tickerscreen.screener.config import ScreenerSettings, UnknownConditionPolicy
from tickerscreen.screener.exceptions import ScreenValidationError
from tickerscreen.screener.pipeline import ScreenerPipeline
from tickerscreen.screener.schemas import Condition
from tickerscreen.screener.throttle import NoopRateLimiter

from .fakes import FakeQuoteSource, make_quote


def _pipeline(source, **kwargs) -> ScreenerPipeline:
    orchestrator = BatchOrchestrator(source, limiter=NoopRateLimiter(), **kwargs)
    return ScreenerPipeline(orchestrator)


@pytest.mark.asyncio
async def test_partial_fetch_failure():
    source = FakeQuoteSource(quotes={"AAA": make_quote("AAA")}, failing={"BBB"})
    result = await _pipeline(source).screen(["AAA", "BBB"], [])
    assert result.count == 1
    assert result.valid_data == 1
    assert result.universe_size == 2
    assert result.screened_size == 2
    assert result.note is None
    assert [record.symbol for record in result.results] == ["AAA"]


@pytest.mark.asyncio
async def test_conditions_filter_results():
    source = FakeQuoteSource(
        quotes={
            "AAA": make_quote("AAA", current=50.0),
            "BBB": make_quote("BBB", current=150.0),
            "CCC": make_quote("CCC", current=250.0),
        }
    )
    conditions = [Condition(left="close", operation="greater", right=100)]
    result = await _pipeline(source).screen(["AAA", "BBB", "CCC"], conditions)
    assert result.count == 2
    assert result.valid_data == 3
    assert [record.symbol for record in result.results] == ["BBB", "CCC"]


@pytest.mark.asyncio
async def test_truncation_is_reported():
    symbols = [f"T{index:02d}" for index in range(30)]
    source = FakeQuoteSource(quotes={symbol: make_quote(symbol) for symbol in symbols})
    result = await _pipeline(source, max_universe_size=25).screen(symbols)
    assert result.universe_size == 30
    assert result.screened_size == 25
    assert result.note is not None
    assert result.count == 25


@pytest.mark.asyncio
async def test_no_truncation_at_cap():
    symbols = [f"T{index:02d}" for index in range(25)]
    source = FakeQuoteSource(quotes={symbol: make_quote(symbol) for symbol in symbols})
    result = await _pipeline(source, max_universe_size=25).screen(symbols)
    assert result.screened_size == 25
    assert result.note is None
    assert "note" not in result.to_response()


@pytest.mark.asyncio
@pytest.mark.parametrize("universe", [[], "AAPL", None, {"AAPL": 1}])
async def test_invalid_universe_is_rejected(universe):
    source = FakeQuoteSource(quotes={})
    with pytest.raises(ScreenValidationError) as excinfo:
        await _pipeline(source).screen(universe)
    assert excinfo.value.message == "Universe must be a non-empty array"
    assert source.calls == []


@pytest.mark.asyncio
async def test_handle_request_checks_action():
    source = FakeQuoteSource(quotes={})
    with pytest.raises(ScreenValidationError) as excinfo:
        await _pipeline(source).handle_request({"action": "scan", "universe": ["A"]})
    assert excinfo.value.message == "Invalid action"


@pytest.mark.asyncio
async def test_handle_request_rejects_bad_conditions():
    source = FakeQuoteSource(quotes={})
    payload = {"action": "screen", "universe": ["AAA"], "conditions": [{"left": "close"}]}
    with pytest.raises(ScreenValidationError):
        await _pipeline(source).handle_request(payload)
    assert source.calls == []


@pytest.mark.asyncio
async def test_handle_request_runs_screen():
    source = FakeQuoteSource(quotes={"AAA": make_quote("AAA")})
    payload = {
        "action": "screen",
        "universe": ["AAA"],
        "conditions": [{"left": "marketCap", "operation": "greater", "right": 0}],
    }
    result = await _pipeline(source).handle_request(payload)
    assert result.count == 1
    response = result.to_response()
    assert response["results"][0]["prevClose"] == 98.0
    assert response["results"][0]["marketCap"] is None


@pytest.mark.asyncio
async def test_reject_policy_stops_before_fetching():
    source = FakeQuoteSource(quotes={"AAA": make_quote("AAA")})
    pipeline = ScreenerPipeline(
        BatchOrchestrator(source, limiter=NoopRateLimiter()),
        ConditionEvaluator(UnknownConditionPolicy.REJECT),
    )
    with pytest.raises(ScreenValidationError):
        await pipeline.screen(["AAA"], [Condition(left="peRatio", operation="less", right=5)])
    assert source.calls == []


def test_from_settings_wires_policy_and_cap():
    source = FakeQuoteSource(quotes={})
    settings = ScreenerSettings(
        max_universe_size=10,
        unknown_condition_policy=UnknownConditionPolicy.FAIL,
    )
    pipeline = ScreenerPipeline.from_settings(settings, source=source)
    assert pipeline.policy is UnknownConditionPolicy.FAIL
    assert pipeline.orchestrator.max_universe_size == 10
