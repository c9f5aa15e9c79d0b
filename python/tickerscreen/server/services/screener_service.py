"""Service layer for the screener API."""

from __future__ import annotations

from typing import Any

from loguru import logger

from tickerscreen.screener.config import ScreenerSettings
from tickerscreen.screener.exceptions import (
    InternalScreeningError,
    ScreenValidationError,
)
from tickerscreen.screener.pipeline import ScreenerPipeline
from tickerscreen.screener.schemas import ScreeningResult


class ScreenerService:
    """Runs screening requests and normalises failures."""

    def __init__(self, pipeline: ScreenerPipeline, settings: ScreenerSettings) -> None:
        self.pipeline = pipeline
        self.settings = settings

    @classmethod
    def from_settings(cls, settings: ScreenerSettings) -> "ScreenerService":
        return cls(ScreenerPipeline.from_settings(settings), settings)

    @property
    def provider_name(self) -> str:
        return self.settings.provider

    @property
    def provider_configured(self) -> bool:
        if self.settings.provider.lower() == "finnhub":
            return bool(self.settings.finnhub_api_key)
        return True

    async def screen(self, payload: Any) -> ScreeningResult:
        """Run a screen; validation errors pass through, others become internal."""
        try:
            return await self.pipeline.handle_request(payload)
        except ScreenValidationError:
            raise
        except InternalScreeningError:
            raise
        except Exception as exc:
            logger.exception("Screen error: {error}", error=exc)
            raise InternalScreeningError(str(exc)) from exc
