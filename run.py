"""Entry point for the asset registry HTTP gateway.

Serves ``asset_registry_api.app.main:app`` with Uvicorn.  Host and
port come from ``API_HOST`` and ``API_PORT`` (defaults ``0.0.0.0`` and
``3000``); the remaining settings are read by
``asset_registry_api.app.core.config``.

Usage:
    python run.py
"""
import asyncio
import logging

from uvicorn import Config, Server

from asset_registry_api.app.core.config import settings
from asset_registry_api.app.main import app


async def main() -> None:
    config = Config(
        app=app,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
    )
    server = Server(config)
    logging.getLogger(__name__).info("Asset registry gateway on http://%s:%s/api/v1", settings.host, settings.port)
    await server.serve()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        pass
