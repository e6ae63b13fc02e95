"""
API Routes - FastAPI route modules.
"""

from github_plugin.api.routes.health import router as health_router
from github_plugin.api.routes.actions import router as actions_router

__all__ = [
    "health_router",
    "actions_router",
]
