"""
Create Pull Request Action - Commits local changes and opens a PR.

FLOW:
1. Find the source repository (URL in the message or closest match)
2. Ask the model for a commit message, PR title and description
3. Branch off the current branch, commit everything, push
4. Open a PR from the new branch into the branch that was checked out
5. Check the original branch out again, even when a step failed
"""

import logging
import re
from typing import Any

from github_plugin.agents.actions.lookup import find_source_repository
from github_plugin.agents.base import ActionResult, BaseAction, Callback
from github_plugin.agents.parsing import JSON_OBJECT_FOOTER, parse_json_object_from_text
from github_plugin.api.middleware.error_handler import AppException
from github_plugin.models.schemas import ChatMessage
from github_plugin.services.llm_service import ModelTier

logger = logging.getLogger(__name__)


PR_INFO_PROMPT = """You are about to create a pull request in {full_name} ({url}).
The request from the conversation:
{request}

Changed files:
{changes}

Generate a commit message, a title for the PR, and a description for the PR. Provide them in the following JSON format:
{{
    "commitMessage": "Create readme file for service abc",
    "title": "Create a readme file for service abc",
    "description": "This PR creates a readme file for the service"
}}
"""


def branch_slug(title: str, max_length: int = 40) -> str:
    """Lowercase, dash separated branch name fragment."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "update"


class CreatePullRequestAction(BaseAction):
    """Opens a pull request with the local changes of a cloned repository."""

    name = "CREATE_PULL_REQUEST"
    similes = ["CREATE_PR", "OPEN_PULL_REQUEST"]
    description = "Create a pull request"

    def __init__(self, store: Any, embedding_service: Any, llm_service: Any, github_service: Any,
                 branch_prefix: str = "agent/"):
        self.store = store
        self.embedding_service = embedding_service
        self.llm = llm_service
        self.github = github_service
        self.branch_prefix = branch_prefix

    async def handle(self, message: ChatMessage, callback: Callback) -> ActionResult:
        try:
            repository = await find_source_repository(
                self.store, self.embedding_service, message.text
            )
            if repository is None:
                await self.reply(
                    callback,
                    "I couldn't find the repository. Could you please confirm the repository details?",
                    error=True,
                )
                return ActionResult(success=False, error="Repository not found")

            path = repository.local_path
            if not await self.github.has_changes(path):
                await self.reply(callback, "There are no changes to commit.", error=True)
                return ActionResult(success=False, error="No changes")

            changes = await self.github.run_git(["status", "--short"], path)
            response = await self.llm.generate_text(
                PR_INFO_PROMPT.format(
                    full_name=repository.full_name,
                    url=repository.url,
                    request=message.text,
                    changes=changes,
                ) + JSON_OBJECT_FOOTER,
                ModelTier.SMALL,
            )
            info = parse_json_object_from_text(response)
            title = str(info.get("title") or "Update from chat agent")
            commit_message = str(info.get("commitMessage") or title)
            description = str(info.get("description") or "")

            base = await self.github.current_branch(path)
            head = f"{self.branch_prefix}{branch_slug(title)}"
            await self.github.create_branch(path, head)
            try:
                await self.github.commit_all(path, commit_message)
                await self.github.push(path, repository.full_name, head)
                pr = await self.github.create_pull_request(
                    repository.full_name, title, description, head, base
                )
            finally:
                await self._restore_branch(path, base)
        except AppException as e:
            logger.error(f"Pull request creation failed: {e.message}")
            await self.reply(callback, f"Failed to create pull request: {e.message}", error=True)
            return ActionResult(success=False, error=e.message)

        await self.reply(callback, f"Pull request #{pr.number} created: {pr.url}")
        return ActionResult(
            success=True,
            data={"number": pr.number, "url": pr.url, "head": pr.head, "base": pr.base},
        )

    async def _restore_branch(self, path: str, base: str) -> None:
        """Check the base branch out again so the next PR branches from it."""
        try:
            await self.github.checkout(path, base)
        except AppException as e:
            logger.warning(f"Could not switch {path} back to {base}: {e.message}")
