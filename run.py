"""Entry point for the accounting services portal API.

Launches the FastAPI application with Uvicorn.  Host and port are read
from the environment variables ``API_HOST`` and ``API_PORT``; defaults
are ``0.0.0.0`` and ``8000``.  Other configuration (token secret, SMTP
server, database path) is read by ``accounting_portal_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import logging
import os

from uvicorn import Config, Server

from accounting_portal_api.app.core.config import settings
from accounting_portal_api.app.main import app


async def run_api() -> None:
    """Start the API using Uvicorn."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("API stopped")
