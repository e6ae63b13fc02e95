"""
API Middleware - Exception types and error handlers.
"""

from github_plugin.api.middleware.error_handler import (
    AppException,
    InvalidInputError,
    RepositoryNotFoundError,
    CloneError,
    IndexingError,
    ProviderError,
    EmbeddingError,
    GenerationError,
    GitHubError,
    ActionNotFoundError,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)

__all__ = [
    "AppException",
    "InvalidInputError",
    "RepositoryNotFoundError",
    "CloneError",
    "IndexingError",
    "ProviderError",
    "EmbeddingError",
    "GenerationError",
    "GitHubError",
    "ActionNotFoundError",
    "app_exception_handler",
    "http_exception_handler",
    "validation_exception_handler",
    "generic_exception_handler",
]
