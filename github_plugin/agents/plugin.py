"""
GitHub Plugin - Registry and dispatch of the chat actions.

COMPLETE FLOW:
==============
1. Chat message + action name (from the HTTP route or an MCP tool)
        │
        ▼
2. get_action: match by name or simile
        │
        ▼
3. action.handle(message, callback)
   - callback relays every response to the conversation
        │
        ▼
4. ActionResult back to the caller
"""

import logging
from typing import List, Optional

from github_plugin.agents.base import ActionResult, BaseAction, Callback
from github_plugin.api.middleware.error_handler import ActionNotFoundError
from github_plugin.models.schemas import ChatMessage

logger = logging.getLogger(__name__)


class GithubPlugin:
    """
    Holds the plugin's actions and routes messages to them.

    Usage:
        plugin = GithubPlugin([CloneRepoAction(repo_service, indexing_service), ...])
        result = await plugin.dispatch("GIT_CLONE", message, callback)
    """

    name = "github"
    description = "Clone GitHub repositories, answer questions about them and open pull requests"

    def __init__(self, actions: List[BaseAction]):
        self.actions = list(actions)

    def get_action(self, name: str) -> BaseAction:
        """
        Find an action by name or simile (case-insensitive).

        Raises:
            ActionNotFoundError: If nothing matches.
        """
        for action in self.actions:
            if action.matches(name):
                return action
        raise ActionNotFoundError(name)

    async def select_action(self, message: ChatMessage) -> Optional[BaseAction]:
        """First action whose validate() accepts the message."""
        for action in self.actions:
            if await action.validate(message):
                return action
        return None

    async def dispatch(self, name: str, message: ChatMessage, callback: Callback) -> ActionResult:
        action = self.get_action(name)
        logger.info(f"Dispatching {action.name} for user={message.user_id} room={message.room_id}")
        return await action.handle(message, callback)
