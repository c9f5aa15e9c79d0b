"""Constants for the ticker screener."""

MAX_UNIVERSE_SIZE: int = 25

PROVIDER_RATE_LIMIT_PER_MINUTE: int = 60
HISTORY_LOOKBACK_DAYS: int = 365
HISTORY_RESOLUTION: str = "D"
HTTP_TIMEOUT_S: float = 10.0

SMA_PERIODS: tuple[int, ...] = (20, 50, 200)
TREND_PERIOD: int = 20
TREND_WINDOW: int = 5
TREND_UP_RATIO: float = 1.02
TREND_DOWN_RATIO: float = 0.98
WEEKLY_STRIDE: int = 5
WEEKLY_TREND_PERIOD: int = 4
WEEKLY_MIN_POINTS: int = 25

WEEK52_TRADING_DAYS: int = 252
NEAR_HIGH_RATIO: float = 0.95
NEAR_LOW_RATIO: float = 1.05

AVG_VOLUME_PERIOD: int = 20
VOLUME_CONTRACTION_RATIO: float = 0.7

DEFAULT_CURRENCY: str = "USD"

KNOWN_ETFS: frozenset[str] = frozenset(
    {
        "SPY", "QQQ", "IWM", "DIA", "XLF", "XLE", "XLK", "XLV", "XLI", "XLP",
        "XLY", "XLB", "XLU", "XLRE", "XLC", "VTI", "VOO", "VEA", "VWO", "BND",
        "GLD", "SLV", "USO", "TLT", "HYG", "LQD", "EEM", "EFA", "ARKK", "ARKG",
    }
)

REQUIRED_PRICE_FIELDS: frozenset[str] = frozenset({"close", "open", "high", "low"})
