"""
Base classes for the chat actions.

Every action the plugin exposes inherits from BaseAction so the
plugin registry, the HTTP routes and the MCP server can treat them
uniformly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from github_plugin.models.schemas import ChatMessage, ChatResponse


# Chat callback channel: delivers one response to the conversation
Callback = Callable[[ChatResponse], Awaitable[None]]


@dataclass
class ActionResult:
    """Result returned by an action after handling a message."""
    success: bool
    data: Any = None
    error: Optional[str] = None


class BaseAction(ABC):
    """
    Base class for all chat actions.

    Actions wire a chat message to external calls and report back
    through the callback:
    - CloneRepoAction: Clone and index a repository
    - QueryProjectAction: Answer a question about a repository
    - SummarizeRepoAction: Describe a repository
    - CreateFileAction: Write a file into a checkout
    - CreatePullRequestAction: Commit, push and open a PR
    """

    name: str = "BASE_ACTION"
    similes: List[str] = []
    description: str = "Base action description"
    examples: List[List[dict]] = []

    async def validate(self, message: ChatMessage) -> bool:
        """Whether the action can handle the message. Defaults to True."""
        return True

    @abstractmethod
    async def handle(self, message: ChatMessage, callback: Callback) -> ActionResult:
        """
        Handle a chat message.

        Args:
            message: Incoming message
            callback: Channel for responses to the conversation

        Returns:
            ActionResult with success status and data/error
        """
        pass

    def matches(self, name: str) -> bool:
        """Whether name refers to this action by its name or a simile."""
        key = name.strip().upper()
        return key == self.name or key in self.similes

    async def reply(self, callback: Callback, text: str, error: bool = False) -> None:
        await callback(ChatResponse(text=text, error=error, action=self.name))
