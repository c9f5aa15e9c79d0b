"""Pydantic schemas for the ticker screener."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TrendLabel = Literal["up", "down", "sideways", "unknown"]
AlignmentLabel = Literal["bullish", "bearish", "mixed"]


class Condition(BaseModel):
    """One field/operation/value predicate."""

    left: str = Field(..., min_length=1, description="Record field name")
    operation: str = Field(..., min_length=1, description="Comparison operation")
    right: Any = Field(default=None, description="Literal or list operand")


class ScreenRequest(BaseModel):
    """Request payload for a screening run."""

    action: str = Field(..., description="Must be 'screen'")
    universe: list[str] = Field(..., description="Symbols to screen")
    conditions: list[Condition] = Field(
        default_factory=list, description="AND-combined conditions"
    )


class InstrumentRecord(BaseModel):
    """Enriched, immutable per-symbol record evaluated against conditions."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    symbol: str = Field(..., description="Ticker symbol")
    name: str = Field(..., description="Display name")

    close: Optional[float] = Field(default=None, description="Current price")
    open: Optional[float] = Field(default=None, description="Session open")
    high: Optional[float] = Field(default=None, description="Session high")
    low: Optional[float] = Field(default=None, description="Session low")
    prev_close: Optional[float] = Field(
        default=None, alias="prevClose", description="Previous close"
    )
    change: Optional[float] = Field(default=None, description="Close - prevClose")
    change_percent: Optional[float] = Field(
        default=None, alias="changePercent", description="Percent change"
    )

    volume: Optional[float] = Field(default=None, description="Latest volume")
    avg_volume: Optional[float] = Field(
        default=None, alias="avgVolume", description="Rolling average volume"
    )
    volume_ratio: Optional[float] = Field(
        default=None, alias="volumeRatio", description="volume / avgVolume"
    )
    volume_contraction: Optional[bool] = Field(
        default=None, alias="volumeContraction", description="Volume below 70% of average"
    )

    week52_high: Optional[float] = Field(
        default=None, alias="week52High", description="Highest close in history"
    )
    week52_low: Optional[float] = Field(
        default=None, alias="week52Low", description="Lowest close in history"
    )
    week52_range_days: Optional[int] = Field(
        default=None,
        alias="week52RangeDays",
        description="Number of daily points the range was computed over",
    )
    week52_full_window: Optional[bool] = Field(
        default=None,
        alias="week52FullWindow",
        description="True when the range covers a full trading year",
    )
    near_52w_high: Optional[bool] = Field(
        default=None, alias="near52WeekHigh", description="Within 5% of the high"
    )
    near_52w_low: Optional[bool] = Field(
        default=None, alias="near52WeekLow", description="Within 5% of the low"
    )

    sma20: Optional[float] = Field(default=None, description="20-day SMA")
    sma50: Optional[float] = Field(default=None, description="50-day SMA")
    sma200: Optional[float] = Field(default=None, description="200-day SMA")
    trend_daily: TrendLabel = Field(
        default="unknown", alias="trendDaily", description="Daily trend"
    )
    trend_weekly: TrendLabel = Field(
        default="unknown", alias="trendWeekly", description="Weekly trend"
    )
    trend_alignment: AlignmentLabel = Field(
        default="mixed", alias="trendAlignment", description="Daily/weekly alignment"
    )

    market_cap: Optional[float] = Field(
        default=None, alias="marketCap", description="Market capitalisation"
    )
    currency: str = Field(default="USD", description="Quote currency")
    is_etf: bool = Field(default=False, description="Exchange traded fund")
    asset_type: str = Field(default="equity", description="Asset class")
    tradable_on_t212_cfd: bool = Field(default=True, description="CFD tradable")
    has_history: bool = Field(
        default=False, alias="hasHistory", description="Built with a daily series"
    )


class ScreeningResult(BaseModel):
    """Outcome of a screening run."""

    count: int = Field(..., description="Number of matching records")
    universe_size: int = Field(..., description="Requested universe size")
    screened_size: int = Field(..., description="Symbols actually fetched")
    valid_data: int = Field(..., description="Records with usable price data")
    note: Optional[str] = Field(default=None, description="Truncation note")
    results: list[InstrumentRecord] = Field(
        default_factory=list, description="Matching records in fetch order"
    )

    def to_response(self) -> dict[str, Any]:
        """Serialise for the wire, omitting the note when there is none."""
        payload = self.model_dump(by_alias=True)
        if payload.get("note") is None:
            payload.pop("note", None)
        return payload
