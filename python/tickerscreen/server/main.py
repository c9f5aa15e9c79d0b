"""Run the screener API with uvicorn."""

from __future__ import annotations

import uvicorn
from loguru import logger

from tickerscreen.screener.config import load_settings
from tickerscreen.server.api.app import create_app


def main() -> None:
    settings = load_settings()
    app = create_app(settings)
    logger.info(
        "Screener ({provider}) running on port {port}",
        provider=settings.provider,
        port=settings.port,
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
