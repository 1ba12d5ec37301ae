"""FastAPI application factory."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dexswap import __version__
from dexswap.config import Settings, get_settings
from dexswap.swap.workflow import SwapWorkflow

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    workflow: Optional[SwapWorkflow] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Credentials are checked here, so a misconfigured process fails at
    startup with ConfigurationError instead of on the first request.
    """
    settings = settings or get_settings()
    if workflow is None:
        settings.validate_credentials()
        workflow = SwapWorkflow.from_settings(settings)

    app = FastAPI(
        title="dexswap",
        description="Quote, prepare and send token swaps through a DEX aggregator",
        version=__version__,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.workflow = workflow

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    from dexswap.api.routes import health
    from dexswap.web.controllers import swaps_router

    app.include_router(health.router, tags=["Health"])
    app.include_router(swaps_router)

    if settings.dry_run:
        logger.warning("DRY_RUN is enabled - transactions are signed but never broadcast")
    return app
