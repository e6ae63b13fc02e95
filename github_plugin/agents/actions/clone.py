"""
Clone Repo Action - Clones a GitHub repository and indexes its files.

FLOW:
1. Extract the first GitHub URL from the message
2. Clone it (an existing checkout is reused)
3. Register the repository in the store
4. Ingest its files (unchanged files are not re-embedded)
"""

import logging
from typing import Any

from github_plugin.agents.base import ActionResult, BaseAction, Callback
from github_plugin.api.middleware.error_handler import AppException
from github_plugin.models.schemas import ChatMessage
from github_plugin.services.repo_service import extract_github_url

logger = logging.getLogger(__name__)


class CloneRepoAction(BaseAction):
    """Clones and indexes a repository mentioned in the conversation."""

    name = "CLONE_REPO"
    similes = [
        "REPO_CLONE",
        "CLONE_REPOSITORY",
        "REPOSITORY_CLONE",
        "COPY_REPO",
        "REPO_COPY",
        "DUPLICATE_REPO",
        "REPO_DUPLICATE",
        "GIT_CLONE",
        "CLONE_GIT_REPO",
    ]
    description = "Clone a GitHub repository"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "Clone this repository: https://github.com/ai16z/eliza"}},
            {"user": "{{agentName}}", "content": {
                "text": "I'll clone the repository at https://github.com/ai16z/eliza",
                "action": "CLONE_REPO",
            }},
        ],
    ]

    def __init__(self, repo_service: Any, indexing_service: Any):
        self.repo_service = repo_service
        self.indexing_service = indexing_service

    async def validate(self, message: ChatMessage) -> bool:
        return extract_github_url(message.text) is not None

    async def handle(self, message: ChatMessage, callback: Callback) -> ActionResult:
        repo_url = extract_github_url(message.text)
        if not repo_url:
            await self.reply(callback, "Could you please provide a valid GitHub repository URL?")
            return ActionResult(success=False, error="No GitHub repository URL in message")

        await self.reply(callback, f"I'll clone the repository at {repo_url}")

        try:
            repo_info = await self.repo_service.clone(repo_url)
            if repo_info.already_cloned:
                await self.reply(callback, "Repository already cloned")

            repository = await self.indexing_service.register_repository(repo_info)
            result = await self.indexing_service.index_repository(repository)
        except AppException as e:
            logger.error(f"Clone of {repo_url} failed: {e.message}")
            await self.reply(callback, f"Failed to clone repository: {e.message}", error=True)
            return ActionResult(success=False, error=e.message)

        await self.reply(
            callback,
            f"Repository cloned successfully to {repository.local_path}. "
            f"Indexed {result.total_files} files "
            f"({result.embedded_files} embedded, {result.unchanged_files} unchanged, "
            f"{result.skipped_files} skipped).",
        )
        return ActionResult(
            success=True,
            data={"repository": repository.model_dump(mode="json"), "indexing": {
                "total_files": result.total_files,
                "embedded_files": result.embedded_files,
                "unchanged_files": result.unchanged_files,
                "skipped_files": result.skipped_files,
                "removed_files": result.removed_files,
            }},
        )
