"""FastAPI application factory for the screener."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from tickerscreen import __version__
from tickerscreen.screener.config import ScreenerSettings, load_settings
from tickerscreen.screener.exceptions import (
    InternalScreeningError,
    ScreenValidationError,
)
from tickerscreen.server.api.routers.screener import (
    InvalidAPIKeyError,
    create_screener_router,
)
from tickerscreen.server.services.screener_service import ScreenerService


def create_app(
    settings: Optional[ScreenerSettings] = None,
    service: Optional[ScreenerService] = None,
) -> FastAPI:
    """Build the app; settings are loaded once when not supplied."""
    settings = settings or (service.settings if service else load_settings())
    app = FastAPI(title="Ticker Screener", version=__version__)
    app.state.screener_service = service or ScreenerService.from_settings(settings)

    @app.exception_handler(InvalidAPIKeyError)
    async def _invalid_api_key(request: Request, exc: InvalidAPIKeyError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"error": "Invalid API Key"})

    @app.exception_handler(ScreenValidationError)
    async def _validation_error(
        request: Request, exc: ScreenValidationError
    ) -> JSONResponse:
        logger.info("Rejected screen request: {error}", error=exc.message)
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _malformed_body(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(InternalScreeningError)
    async def _internal_error(
        request: Request, exc: InternalScreeningError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=500, content={"error": "Server error", "detail": exc.detail}
        )

    app.include_router(create_screener_router())
    return app
