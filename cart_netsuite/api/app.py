"""
FastAPI application for the 3DCart-NetSuite integration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse

from cart_netsuite.api.pages import index_page
from cart_netsuite.api.routes import status, upload, webhook
from cart_netsuite.config import Settings, get_settings
from cart_netsuite.utils.logger import setup_logging, shutdown_logging


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to serve with; defaults to get_settings()
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(
            settings.log_level,
            settings.log_file,
            max_bytes=settings.log_max_bytes,
            backup_count=settings.log_backup_count
        )
        logger.info(f"{settings.app_name} v{settings.app_version} starting ({settings.environment})")
        yield
        logger.info(f"{settings.app_name} stopping")
        shutdown_logging()

    app = FastAPI(
        title=settings.app_name,
        description="Receives 3DCart orders and creates NetSuite sales orders",
        version=settings.app_version,
        lifespan=lifespan
    )
    app.state.settings = settings

    app.include_router(webhook.router)
    app.include_router(upload.router)
    app.include_router(status.router)

    @app.get("/", response_class=HTMLResponse)
    async def root(request: Request):
        """Index page."""
        return HTMLResponse(index_page(request.app.state.settings))

    return app
