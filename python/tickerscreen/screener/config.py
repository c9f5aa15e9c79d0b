"""Load screener configuration files and runtime settings."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml
from loguru import logger
from pydantic import BaseModel, Field

from tickerscreen.utils.path import get_python_root_path

from . import constants


class UnknownConditionPolicy(str, Enum):
    """How conditions naming an unknown field or operation are treated."""

    PASS = "pass"
    FAIL = "fail"
    REJECT = "reject"


class ScreenerSettings(BaseModel):
    """Process-scoped screener settings."""

    provider: str = Field(default="finnhub", description="Quote source name")
    finnhub_api_key: Optional[str] = Field(
        default=None, description="Finnhub API token"
    )
    finnhub_base_url: str = Field(
        default="https://finnhub.io/api/v1", description="Finnhub API base URL"
    )
    include_history: bool = Field(
        default=False, description="Fetch daily candles alongside quotes"
    )
    history_lookback_days: int = Field(
        default=constants.HISTORY_LOOKBACK_DAYS, description="Candle lookback"
    )
    rate_limit_per_minute: int = Field(
        default=constants.PROVIDER_RATE_LIMIT_PER_MINUTE,
        gt=0,
        description="Provider call budget per minute",
    )
    max_universe_size: int = Field(
        default=constants.MAX_UNIVERSE_SIZE, gt=0, description="Universe cap"
    )
    http_timeout_s: float = Field(
        default=constants.HTTP_TIMEOUT_S, gt=0, description="HTTP timeout"
    )
    unknown_condition_policy: UnknownConditionPolicy = Field(
        default=UnknownConditionPolicy.PASS,
        description="Treatment of unknown condition fields and operations",
    )
    api_key: Optional[str] = Field(
        default=None, description="Key callers must send in x-api-key"
    )
    port: int = Field(default=3000, description="HTTP listen port")


_ENV_OVERRIDES: dict[str, str] = {
    "SCREENER_PROVIDER": "provider",
    "FINNHUB_KEY": "finnhub_api_key",
    "FINNHUB_API_KEY": "finnhub_api_key",
    "API_KEY": "api_key",
    "SCREENER_API_KEY": "api_key",
    "PORT": "port",
}


def get_screener_config_dir() -> Path:
    """Return the directory containing screener configs."""
    return Path(get_python_root_path()) / "configs" / "screener"


def load_screener_config(name: str) -> dict[str, Any]:
    """Load a screener configuration YAML file by name."""
    config_path = get_screener_config_dir() / f"{name}.yaml"
    if not config_path.exists():
        return {}
    with config_path.open("r", encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


def load_settings(
    name: str = "screening", environ: Optional[dict[str, str]] = None
) -> ScreenerSettings:
    """Build settings from the YAML file, then apply environment overrides."""
    payload = dict(load_screener_config(name))
    env = os.environ if environ is None else environ
    for env_name, field_name in _ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value:
            payload[field_name] = value
    settings = ScreenerSettings(**payload)
    logger.info(
        "Loaded screener settings (provider={provider}, history={history}, "
        "rate_limit={rate_limit}/min, cap={cap}, policy={policy})",
        provider=settings.provider,
        history=settings.include_history,
        rate_limit=settings.rate_limit_per_minute,
        cap=settings.max_universe_size,
        policy=settings.unknown_condition_policy.value,
    )
    return settings
