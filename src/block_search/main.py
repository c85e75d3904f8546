"""
Propagation Re-run Application

Builds a one-route FastAPI app around an already wired `BlockSearchModule`.
The host owns the module's collaborators and mounts the app in whatever
server it already runs; the app's lifespan initializes and uninitializes
the module.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from .api import propagation_routes
from .config import settings
from .propagation.module import BlockSearchModule


def configure_logging(level: str) -> None:
    """Apply `level` to the `blocksearch` logger hierarchy."""
    logging.getLogger("blocksearch").setLevel(level.upper())


def create_app(module: BlockSearchModule) -> FastAPI:
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        module.initialize()
        try:
            yield
        finally:
            module.uninitialize()

    app = FastAPI(title="block-search", version="1.0.0", lifespan=lifespan)
    app.state.blocksearch = module
    app.include_router(propagation_routes.router)

    return app
