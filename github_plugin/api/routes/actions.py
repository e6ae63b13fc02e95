"""
Action Endpoints - Chat-dispatch surface of the plugin.

Each POST runs one action; every message the action sends through its
callback is collected into the response transcript.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from github_plugin.agents.plugin import GithubPlugin
from github_plugin.core.dependencies import get_plugin
from github_plugin.models.requests import ActionRequest
from github_plugin.models.responses import ActionInfo, ActionListResponse, ActionResponse
from github_plugin.models.schemas import ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/actions", tags=["Actions"])


@router.get(
    "",
    response_model=ActionListResponse,
    summary="List Actions",
    description="List the actions exposed by the plugin with their similes"
)
async def list_actions(plugin: GithubPlugin = Depends(get_plugin)) -> ActionListResponse:
    return ActionListResponse(
        plugin=plugin.name,
        actions=[
            ActionInfo(name=a.name, similes=list(a.similes), description=a.description)
            for a in plugin.actions
        ],
    )


@router.post(
    "/{action_name}",
    response_model=ActionResponse,
    summary="Run Action",
    description="Run an action (by name or simile) on a chat message"
)
async def run_action(
    action_name: str,
    request: ActionRequest,
    plugin: GithubPlugin = Depends(get_plugin),
) -> ActionResponse:
    """
    Dispatch a chat message to an action.

    Returns:
        ActionResponse with the callback transcript

    Raises:
        ActionNotFoundError: Unknown action name (404)
    """
    action = plugin.get_action(action_name)
    responses: List[ChatResponse] = []

    async def callback(response: ChatResponse) -> None:
        responses.append(response)

    result = await action.handle(request.to_message(), callback)
    return ActionResponse(
        success=result.success,
        action=action.name,
        responses=responses,
        error=result.error,
    )
