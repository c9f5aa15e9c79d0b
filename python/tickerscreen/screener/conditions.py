"""AND-combined condition evaluation over instrument records."""

from __future__ import annotations

import math
from typing import Any, Callable, Iterable, Sequence

from loguru import logger

from . import constants
from .config import UnknownConditionPolicy
from .exceptions import ScreenValidationError
from .schemas import Condition, InstrumentRecord

FieldGetter = Callable[[InstrumentRecord], Any]


def _attr(name: str) -> FieldGetter:
    return lambda record: getattr(record, name)


# Wire name -> getter. Aliases share a getter with their canonical name.
FIELD_GETTERS: dict[str, FieldGetter] = {
    "symbol": _attr("symbol"),
    "name": _attr("name"),
    "close": _attr("close"),
    "open": _attr("open"),
    "high": _attr("high"),
    "low": _attr("low"),
    "prevClose": _attr("prev_close"),
    "change": _attr("change"),
    "changePercent": _attr("change_percent"),
    "volume": _attr("volume"),
    "avgVolume": _attr("avg_volume"),
    "volumeRatio": _attr("volume_ratio"),
    "volumeContraction": _attr("volume_contraction"),
    "week52High": _attr("week52_high"),
    "week52Low": _attr("week52_low"),
    "52_week_high": _attr("week52_high"),
    "52_week_low": _attr("week52_low"),
    "week52RangeDays": _attr("week52_range_days"),
    "week52FullWindow": _attr("week52_full_window"),
    "near52WeekHigh": _attr("near_52w_high"),
    "near52WeekLow": _attr("near_52w_low"),
    "sma20": _attr("sma20"),
    "sma50": _attr("sma50"),
    "sma200": _attr("sma200"),
    "trendDaily": _attr("trend_daily"),
    "trendWeekly": _attr("trend_weekly"),
    "trendAlignment": _attr("trend_alignment"),
    "marketCap": _attr("market_cap"),
    "currency": _attr("currency"),
    "is_etf": _attr("is_etf"),
    "asset_type": _attr("asset_type"),
    "tradable_on_t212_cfd": _attr("tradable_on_t212_cfd"),
    "hasHistory": _attr("has_history"),
}

# Fields that support the ``near`` operation, mapped to their proximity flag.
NEAR_FLAGS: dict[str, FieldGetter] = {
    "52_week_high": _attr("near_52w_high"),
    "52_week_low": _attr("near_52w_low"),
}

OPERATIONS: frozenset[str] = frozenset({"equal", "greater", "less", "in", "near"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equal(left: Any, right: Any) -> bool:
    """Equality without cross-type coercion (``True`` never equals ``1``)."""
    if _is_number(left) and _is_number(right):
        return left == right
    if type(left) is not type(right):
        return False
    return left == right


def to_number(value: Any) -> float:
    """Coerce like a numeric cast; unconvertible values become NaN."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _right_number(condition: Condition) -> float:
    # An omitted operand is NaN; an explicit null coerces to 0.
    if "right" not in condition.model_fields_set:
        return math.nan
    return to_number(condition.right)


class ConditionEvaluator:
    """Evaluate condition sets with a configurable unknown-condition policy."""

    def __init__(
        self, policy: UnknownConditionPolicy = UnknownConditionPolicy.PASS
    ) -> None:
        self.policy = policy

    def validate(self, conditions: Sequence[Condition]) -> None:
        """Raise for unknown fields or operations under the ``reject`` policy."""
        if self.policy is not UnknownConditionPolicy.REJECT:
            return
        problems = [
            f"{index}: {condition.left} {condition.operation}"
            for index, condition in enumerate(conditions)
            if condition.left not in FIELD_GETTERS
            or condition.operation not in OPERATIONS
        ]
        if problems:
            raise ScreenValidationError(
                "Unsupported condition field or operation",
                details={"conditions": problems},
            )

    def evaluate(
        self, record: InstrumentRecord, conditions: Sequence[Condition]
    ) -> bool:
        if not conditions:
            return True
        return all(self._evaluate_one(record, condition) for condition in conditions)

    def filter(
        self, records: Iterable[InstrumentRecord], conditions: Sequence[Condition]
    ) -> list[InstrumentRecord]:
        return [record for record in records if self.evaluate(record, conditions)]

    def _unknown(self, condition: Condition, reason: str) -> bool:
        logger.debug(
            "Unknown condition {reason} ({left} {operation}) under policy {policy}",
            reason=reason,
            left=condition.left,
            operation=condition.operation,
            policy=self.policy.value,
        )
        return self.policy is UnknownConditionPolicy.PASS

    def _evaluate_one(self, record: InstrumentRecord, condition: Condition) -> bool:
        getter = FIELD_GETTERS.get(condition.left)
        if getter is None:
            return self._unknown(condition, "field")

        left = getter(record)
        if left is None:
            return condition.left not in constants.REQUIRED_PRICE_FIELDS

        operation = condition.operation
        right = condition.right
        if operation == "equal":
            return strict_equal(left, right)
        if operation == "greater":
            return to_number(left) > _right_number(condition)
        if operation == "less":
            return to_number(left) < _right_number(condition)
        if operation == "in":
            return isinstance(right, list) and any(
                strict_equal(left, item) for item in right
            )
        if operation == "near":
            return self._evaluate_near(record, condition)
        return self._unknown(condition, "operation")

    @staticmethod
    def _evaluate_near(record: InstrumentRecord, condition: Condition) -> bool:
        flag_getter = NEAR_FLAGS.get(condition.left)
        if flag_getter is None:
            return False
        flag = flag_getter(record)
        if flag is None:
            # Degraded mode: proximity cannot be computed without history.
            logger.debug(
                "Near check on {field} passes without history for {symbol}",
                field=condition.left,
                symbol=record.symbol,
            )
            return True
        return bool(flag)

