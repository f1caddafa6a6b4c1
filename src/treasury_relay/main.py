"""Main entry point - runs the API server."""

import logging

import uvicorn

from treasury_relay.api.app import create_app
from treasury_relay.config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Configure logging and serve the API."""
    settings = get_settings()

    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info("Starting treasury relay...")
    logger.info(f"Environment: {settings.environment}")
    if not settings.has_signer_key:
        logger.warning("TREASURY_PRIVATE_KEY not set - withdrawals disabled")

    app = create_app()
    logger.info(f"Starting API server on {settings.api_host}:{settings.port}")
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
