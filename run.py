"""Entry point for the auction API server.

Starts the FastAPI application with Uvicorn.  Host, port and log level
come from the same environment variables as the application settings
(``HOST``, ``PORT``, ``LOG_LEVEL``); defaults are ``0.0.0.0``, ``7000``
and ``INFO``.  The auction store is opened and closed by the
application's startup and shutdown events.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from auction_api.app.core.config import settings
from auction_api.app.main import app


async def run_api() -> None:
    """Serve the API until the process is interrupted."""
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info(
        "Auction server starting on http://%s:%s (health check at /health)", settings.host, settings.port
    )
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        pass
