"""Screening pipeline: fetch, enrich, filter and summarise a universe."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from loguru import logger
from pydantic import ValidationError

from .batch import BatchOrchestrator
from .conditions import ConditionEvaluator
from .config import ScreenerSettings, UnknownConditionPolicy
from .exceptions import ScreenValidationError
from .market_data import QuoteSource, build_quote_source
from .schemas import Condition, InstrumentRecord, ScreeningResult, ScreenRequest
from .throttle import RateLimiter

INVALID_ACTION = "Invalid action"
INVALID_UNIVERSE = "Universe must be a non-empty array"


class ScreenerPipeline:
    """Orchestrator output -> price check -> condition filter -> summary."""

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        evaluator: Optional[ConditionEvaluator] = None,
    ) -> None:
        self.orchestrator = orchestrator
        self.evaluator = evaluator or ConditionEvaluator()

    @classmethod
    def from_settings(
        cls,
        settings: ScreenerSettings,
        source: Optional[QuoteSource] = None,
        limiter: Optional[RateLimiter] = None,
    ) -> "ScreenerPipeline":
        quote_source = source or build_quote_source(settings)
        orchestrator = BatchOrchestrator(
            quote_source,
            limiter=limiter,
            max_universe_size=settings.max_universe_size,
            rate_limit_per_minute=settings.rate_limit_per_minute,
            history_lookback_days=settings.history_lookback_days,
        )
        return cls(orchestrator, ConditionEvaluator(settings.unknown_condition_policy))

    @property
    def policy(self) -> UnknownConditionPolicy:
        return self.evaluator.policy

    async def screen(
        self, universe: Any, conditions: Optional[Sequence[Condition]] = None
    ) -> ScreeningResult:
        if not isinstance(universe, list) or not universe:
            raise ScreenValidationError(INVALID_UNIVERSE)
        if not all(isinstance(symbol, str) for symbol in universe):
            raise ScreenValidationError(
                "Universe must contain only symbol strings"
            )
        condition_list = list(conditions or [])
        self.evaluator.validate(condition_list)

        outcome = await self.orchestrator.run(universe)
        priced = self._with_price(outcome.records)
        matches = self.evaluator.filter(priced, condition_list)
        logger.info(
            "{count} symbols passed {conditions} condition(s)",
            count=len(matches),
            conditions=len(condition_list),
        )
        return ScreeningResult(
            count=len(matches),
            universe_size=outcome.requested_size,
            screened_size=outcome.attempted,
            valid_data=len(priced),
            note=outcome.truncation_note,
            results=matches,
        )

    async def handle_request(self, payload: Any) -> ScreeningResult:
        """Validate a raw request body and run the screen it describes."""
        if not isinstance(payload, dict) or payload.get("action") != "screen":
            raise ScreenValidationError(INVALID_ACTION)
        universe = payload.get("universe")
        if not isinstance(universe, list) or not universe:
            raise ScreenValidationError(INVALID_UNIVERSE)
        try:
            request = ScreenRequest.model_validate(
                {**payload, "conditions": payload.get("conditions") or []}
            )
        except ValidationError as exc:
            raise ScreenValidationError(
                "Invalid request",
                details={
                    "errors": exc.errors(include_url=False, include_context=False)
                },
            ) from exc
        return await self.screen(request.universe, request.conditions)

    @staticmethod
    def _with_price(records: Sequence[InstrumentRecord]) -> list[InstrumentRecord]:
        priced = [record for record in records if record.close is not None]
        dropped = len(records) - len(priced)
        if dropped:
            logger.warning("Dropped {count} records without a price", count=dropped)
        return priced
