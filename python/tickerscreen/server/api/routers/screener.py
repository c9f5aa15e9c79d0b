"""Screener API router."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, Request

from tickerscreen.server.api.schemas.screener import ErrorResponse, HealthResponse
from tickerscreen.server.services.screener_service import ScreenerService


class InvalidAPIKeyError(Exception):
    """The caller did not present the configured API key."""


def get_screener_service(request: Request) -> ScreenerService:
    return request.app.state.screener_service


def require_api_key(
    x_api_key: str | None = Header(default=None),
    service: ScreenerService = Depends(get_screener_service),
) -> None:
    expected = service.settings.api_key
    if not x_api_key or not expected:
        raise InvalidAPIKeyError()
    if not secrets.compare_digest(x_api_key.encode("utf-8"), expected.encode("utf-8")):
        raise InvalidAPIKeyError()


def create_screener_router() -> APIRouter:
    """Create screener router."""
    router = APIRouter(
        tags=["screener"],
        dependencies=[Depends(require_api_key)],
        responses={
            403: {"model": ErrorResponse, "description": "Invalid API key"},
        },
    )

    @router.post(
        "/screen",
        summary="Screen a universe",
        description="Fetch, enrich and filter the given symbols.",
        responses={
            400: {"model": ErrorResponse, "description": "Invalid request"},
            500: {"model": ErrorResponse, "description": "Screening failed"},
        },
    )
    async def screen(
        payload: Any = Body(default=None),
        service: ScreenerService = Depends(get_screener_service),
    ) -> dict[str, Any]:
        result = await service.screen(payload)
        return result.to_response()

    @router.get(
        "/health",
        response_model=HealthResponse,
        summary="Health check",
    )
    async def health(
        service: ScreenerService = Depends(get_screener_service),
    ) -> HealthResponse:
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc).isoformat(),
            provider=service.provider_name,
            provider_configured=service.provider_configured,
        )

    return router
