"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from treasury_relay import __version__
from treasury_relay.config import get_settings
from treasury_relay.errors import TreasuryError
from treasury_relay.service import TreasuryService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: connect early so the first request does not pay for probing
    await app.state.treasury.log_startup_banner()
    yield
    # Shutdown
    await app.state.treasury.close()


async def treasury_error_handler(request: Request, exc: TreasuryError) -> JSONResponse:
    """Render treasury errors with their own status and payload."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def create_app(service: Optional[TreasuryService] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        service: Treasury service to serve; built from settings when omitted
    """
    settings = get_settings()

    app = FastAPI(
        title="Treasury Relay API",
        description="Treasury withdrawals with high-gas fast confirmations",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.treasury = service or TreasuryService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TreasuryError, treasury_error_handler)

    # Register routes
    from treasury_relay.api.routes import admin, earnings, health, withdrawal

    app.include_router(health.router, tags=["Health"])
    app.include_router(withdrawal.router, tags=["Withdrawals"])
    app.include_router(earnings.router, tags=["Earnings"])
    app.include_router(admin.router, tags=["Admin"])

    return app
