"""
API Response Models - Pydantic models for API responses.
"""

from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from github_plugin.models.schemas import ChatResponse


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str
    environment: str
    timestamp: datetime = Field(default_factory=_utcnow)


class ActionInfo(BaseModel):
    """Public description of a registered action."""
    name: str
    similes: List[str] = Field(default_factory=list)
    description: str


class ActionListResponse(BaseModel):
    """Actions exposed by the plugin."""
    plugin: str
    actions: List[ActionInfo]


class ActionResponse(BaseModel):
    """
    Transcript of a dispatched action.

    Example:
        {
            "success": true,
            "action": "CLONE_REPO",
            "responses": [
                {"text": "I'll clone the repository at https://github.com/o/r", "error": false},
                {"text": "Repository cloned successfully", "error": false}
            ]
        }
    """
    success: bool
    action: str
    responses: List[ChatResponse] = Field(default_factory=list)
    error: Optional[str] = None
