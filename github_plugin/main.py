"""
GitHub Agent Plugin - FastAPI Application Entry Point

Exposes the plugin's chat actions over HTTP for a chat-dispatch layer.
The same actions are available as MCP tools through mcp_stdio_server.py.

Usage:
    uvicorn github_plugin.main:app --reload

Or:
    python -m uvicorn github_plugin.main:app --host 0.0.0.0 --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from github_plugin.core.config import get_settings
from github_plugin.api.routes.health import router as health_router
from github_plugin.api.routes.actions import router as actions_router
from github_plugin.api.middleware.error_handler import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Services are built lazily on first use by the dependency factories.
    """
    settings = get_settings()
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}, store: {settings.store_backend}")

    yield

    logger.info("Shutting down application...")


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
## GitHub Agent Plugin API

Chat actions for working with GitHub repositories.

### Actions
- **CLONE_REPO**: Clone and index a repository
- **EXPLAIN_PROJECT**: Answer a question about a cloned repository
- **SUMMARIZE_REPO**: Summarize a cloned repository
- **CREATE_FILE**: Write a file into a checkout
- **CREATE_PULL_REQUEST**: Commit local changes and open a pull request

### Quick Start
1. POST `/api/v1/actions/CLONE_REPO` with `{"text": "Clone https://github.com/owner/repo"}`
2. POST `/api/v1/actions/EXPLAIN_PROJECT` with `{"text": "How is it built?"}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Register routers
    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(actions_router, prefix=settings.api_prefix)

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs",
            "health": f"{settings.api_prefix}/health",
            "actions": f"{settings.api_prefix}/actions",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "github_plugin.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
