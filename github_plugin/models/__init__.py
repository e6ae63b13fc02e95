"""
Data Models for the GitHub Agent Plugin
=======================================

Organized into three categories:
- schemas: Core domain models used across the plugin
- requests: API request validation models
- responses: API response models
"""

from github_plugin.models.schemas import (
    Repository,
    IndexedFile,
    EvidenceMemory,
    SimilarityMatch,
    ChatMessage,
    ChatResponse,
    repository_id_for,
    file_id_for,
    memory_id_for,
)

from github_plugin.models.requests import ActionRequest

from github_plugin.models.responses import (
    HealthResponse,
    ActionInfo,
    ActionListResponse,
    ActionResponse,
)

__all__ = [
    # Schemas
    "Repository",
    "IndexedFile",
    "EvidenceMemory",
    "SimilarityMatch",
    "ChatMessage",
    "ChatResponse",
    "repository_id_for",
    "file_id_for",
    "memory_id_for",
    # Requests
    "ActionRequest",
    # Responses
    "HealthResponse",
    "ActionInfo",
    "ActionListResponse",
    "ActionResponse",
]
