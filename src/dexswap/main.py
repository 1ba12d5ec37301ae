"""Main entry point - validates configuration and serves the swap API."""

import asyncio
import logging
import sys

import uvicorn

from dexswap.api.app import create_app
from dexswap.config import get_settings
from dexswap.errors import ConfigurationError

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def serve() -> None:
    """Run the FastAPI server."""
    settings = get_settings()
    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting dexswap on {settings.api_host}:{settings.api_port} (chain {settings.chain_id})")
    await server.serve()


def main() -> None:
    """Main entry point."""
    settings = get_settings()
    configure_logging(settings.debug)
    logger.info(f"Environment: {settings.environment}")

    try:
        asyncio.run(serve())
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")


if __name__ == "__main__":
    main()
