"""Exception hierarchy for the ticker screener."""

from __future__ import annotations

from typing import Any


class ScreenerError(Exception):
    """Base class for screener errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "SCREENER_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ScreenValidationError(ScreenerError):
    """The request shape is invalid; nothing was fetched."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "VALIDATION_ERROR", details)


class DataUnavailableError(ScreenerError):
    """A symbol's quote or series could not be obtained or was unusable."""

    def __init__(
        self,
        message: str,
        symbol: str,
        provider_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(details or {})
        merged["symbol"] = symbol
        if provider_name:
            merged["provider"] = provider_name
        super().__init__(message, "DATA_UNAVAILABLE", merged)
        self.symbol = symbol
        self.provider_name = provider_name


class InternalScreeningError(ScreenerError):
    """Unexpected failure while orchestrating or evaluating a screen."""

    def __init__(self, detail: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(detail, "INTERNAL_ERROR", details)
        self.detail = detail
