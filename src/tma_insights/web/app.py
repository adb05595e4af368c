"""
FastAPI application for the TMA Insights dashboard.

PURPOSE: Application factory and server runner.
AI CONTEXT: Creates the app with all routes registered.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ..__version__ import __version__
from ..config import Config
from .routes import router

__all__ = ["create_app", "run_dashboard"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:  # noqa: ARG001
    """
    Log dashboard startup and shutdown.

    Args:
        app: The FastAPI application instance (provided by FastAPI).

    Yields:
        None. Control returns to FastAPI to handle requests.
    """
    logger.info("TMA Insights dashboard starting (v%s)", __version__)
    logger.info("Reading dataset from %s", Config.get_data_file())
    yield
    logger.info("TMA Insights dashboard shutting down")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI dashboard application.

    Business context: The dashboard is the read-only report page of the
    TMA tracker. It serves both the HTML page and JSON endpoints so other
    tools can consume the same numbers.

    Returns:
        FastAPI application with all routes registered and OpenAPI docs
        at /docs.

    Example:
        >>> from fastapi.testclient import TestClient
        >>> client = TestClient(create_app())
        >>> client.get("/health").json()["status"]
        'ok'
    """
    app = FastAPI(
        title="TMA Insights",
        description="Daily analytics and achievements for TMA-tracked work",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app


def run_dashboard(
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = False,
    log_level: str = "info",
) -> None:
    """
    Launch the dashboard with uvicorn.

    Blocks until the server is stopped (Ctrl+C). The dataset path is taken
    from Config.get_data_file(); set it with the CLI's --data flag or the
    TMA_INSIGHTS_DATA environment variable.

    Args:
        host: Interface to bind. '127.0.0.1' keeps it local.
        port: TCP port. Default 8000.
        reload: Auto-reload on code changes (development only).
        log_level: Uvicorn log level.

    Raises:
        OSError: If the port is already in use.
    """
    uvicorn.run(
        "tma_insights.web.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    run_dashboard()
