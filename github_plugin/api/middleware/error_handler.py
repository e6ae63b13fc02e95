"""
Error Handler Middleware - Exception hierarchy and API error envelopes.

The exception classes in this module are raised by services and agents
throughout the plugin. The HTTP handlers at the bottom turn them into
consistent JSON error responses for the FastAPI surface.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback
from datetime import datetime, timezone
from typing import Optional

from github_plugin.core.config import get_settings

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base exception for plugin errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(AppException):
    """Raised for unusable caller input (empty question, bad URL, ...)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            status_code=400,
            details={"field": field} if field else {}
        )


class RepositoryNotFoundError(AppException):
    """Raised when a repository cannot be resolved or has no local checkout."""

    def __init__(self, reference: str):
        super().__init__(
            message=f"Repository not found: {reference}",
            error_code="REPO_NOT_FOUND",
            status_code=404,
            details={"repository": reference}
        )


class CloneError(AppException):
    """Raised when git clone fails or times out."""

    def __init__(self, message: str, repo_url: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CLONE_ERROR",
            status_code=502,
            details={"repo_url": repo_url} if repo_url else {}
        )


class IndexingError(AppException):
    """Raised when ingestion of a repository fails."""

    def __init__(self, message: str, repo_url: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="INDEXING_ERROR",
            status_code=500,
            details={"repo_url": repo_url} if repo_url else {}
        )


class ProviderError(AppException):
    """Raised when an embedding or text generation call fails."""

    def __init__(self, message: str, provider: str):
        super().__init__(
            message=message,
            error_code="PROVIDER_ERROR",
            status_code=502,
            details={"provider": provider}
        )


class EmbeddingError(ProviderError):
    """Embedding provider failure."""

    def __init__(self, message: str):
        super().__init__(message, provider="embedding")


class GenerationError(ProviderError):
    """Text generation provider failure."""

    def __init__(self, message: str):
        super().__init__(message, provider="text_generation")


class GitHubError(AppException):
    """Raised when a local git command or a GitHub API call fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="GITHUB_ERROR",
            status_code=502,
            details={"github_status": status} if status else {}
        )


class ActionNotFoundError(AppException):
    """Raised when no registered action matches a requested name."""

    def __init__(self, action_name: str):
        super().__init__(
            message=f"Unknown action: {action_name}",
            error_code="ACTION_NOT_FOUND",
            status_code=404,
            details={"action": action_name}
        )


def create_error_response(
    message: str,
    error_code: str = "INTERNAL_ERROR",
    status_code: int = 500,
    details: Optional[dict] = None
) -> JSONResponse:
    """Create a standardized error response."""
    settings = get_settings()

    content = {
        "success": False,
        "error": message,
        "error_code": error_code,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    # Include details in debug mode
    if details and settings.debug:
        content["details"] = details

    return JSONResponse(
        status_code=status_code,
        content=content
    )


async def app_exception_handler(
    request: Request,
    exc: AppException
) -> JSONResponse:
    """Handle plugin-specific exceptions."""
    return create_error_response(
        message=exc.message,
        error_code=exc.error_code,
        status_code=exc.status_code,
        details=exc.details
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP exceptions."""
    return create_error_response(
        message=str(exc.detail),
        error_code="HTTP_ERROR",
        status_code=exc.status_code
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        loc = " -> ".join(str(l) for l in error["loc"])
        errors.append(f"{loc}: {error['msg']}")

    return create_error_response(
        message="Validation error",
        error_code="VALIDATION_ERROR",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """Handle unexpected exceptions."""
    settings = get_settings()

    traceback_str = "".join(
        traceback.format_exception(type(exc), exc, exc.__traceback__)
    )
    logger.error(f"Unexpected error: {traceback_str}")

    details = None
    if settings.debug:
        details = {
            "exception_type": type(exc).__name__,
            "traceback": traceback_str
        }

    return create_error_response(
        message="An unexpected error occurred",
        error_code="INTERNAL_ERROR",
        status_code=500,
        details=details
    )
