"""Main entry point - serves the swap limits API."""

import asyncio
import logging

import uvicorn

from swaplimits.api.app import create_app
from swaplimits.config import get_settings

logger = logging.getLogger(__name__)


async def serve() -> None:
    """Run the FastAPI server."""
    settings = get_settings()

    # Configure logging
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info("Starting SwapLimits...")
    logger.info(f"Environment: {settings.environment} (dry run: {settings.dry_run})")

    app = create_app()
    config = uvicorn.Config(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting API server on {settings.api_host}:{settings.api_port}")
    await server.serve()


def main():
    """Main entry point."""
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")


if __name__ == "__main__":
    main()
