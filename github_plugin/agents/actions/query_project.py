"""
Query Project Actions - Answer questions about a cloned repository.

Both actions hand the question to the EvidenceGatherer and relay its
progress notifications to the conversation.
"""

import asyncio
import logging
from typing import Any

from github_plugin.agents.actions.lookup import resolve_repository
from github_plugin.agents.base import ActionResult, BaseAction, Callback
from github_plugin.api.middleware.error_handler import AppException
from github_plugin.models.schemas import ChatMessage

logger = logging.getLogger(__name__)

SUMMARY_QUESTION = (
    "Summarize this repository: what is its purpose, how is the code "
    "structured, how is it used and how is it built?"
)


class QueryProjectAction(BaseAction):
    """Answers a question about the project using the EvidenceGatherer."""

    name = "EXPLAIN_PROJECT"
    similes = [
        "QUERY_PROJECT",
        "WHAT_IS_PROJECT",
        "HOW_TO_USE",
        "HOW_TO_BUILD",
        "SEARCH_PROJECT",
        "EXPLAIN_CODE",
    ]
    description = "Answer questions about a cloned project by reading its files"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "What is the purpose of this project?"}},
            {"user": "{{agentName}}", "content": {
                "text": "I'll look into the project to find out.",
                "action": "EXPLAIN_PROJECT",
            }},
        ],
        [
            {"user": "{{user1}}", "content": {"text": "How to use this project to build a web application?"}},
            {"user": "{{agentName}}", "content": {
                "text": "I'll look into the project to find out.",
                "action": "HOW_TO_USE",
            }},
        ],
    ]

    def __init__(self, store: Any, gatherer: Any, timeout_seconds: float = 300):
        self.store = store
        self.gatherer = gatherer
        self.timeout_seconds = timeout_seconds

    def question_for(self, message: ChatMessage) -> str:
        return message.text

    async def handle(self, message: ChatMessage, callback: Callback) -> ActionResult:
        repository = await resolve_repository(self.store, message.text)
        if repository is None:
            await self.reply(
                callback,
                "I couldn't find the repository. Could you please confirm the repository details?",
            )
            return ActionResult(success=False, error="Repository not found")

        await self.reply(
            callback,
            f"I'll look into the project at {repository.local_path} and gather the necessary information.",
        )

        async def notify(text: str) -> None:
            await self.reply(callback, text)

        try:
            result = await asyncio.wait_for(
                self.gatherer.answer_question(self.question_for(message), repository, notify),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Question on {repository.full_name} timed out")
            await self.reply(
                callback,
                f"I couldn't answer in time ({self.timeout_seconds:g}s). Please try a narrower question.",
                error=True,
            )
            return ActionResult(success=False, error="Timed out")
        except AppException as e:
            logger.error(f"Question on {repository.full_name} failed: {e.message}")
            await self.reply(callback, f"Failed to answer the question: {e.message}", error=True)
            return ActionResult(success=False, error=e.message)

        if result.insufficient_evidence:
            await self.reply(
                callback,
                "I couldn't gather enough information after multiple attempts.",
                error=True,
            )
            return ActionResult(
                success=False,
                data={"checked_files": result.checked_files, "attempts": result.attempts},
                error="Insufficient evidence",
            )

        await self.reply(callback, result.answer)
        return ActionResult(
            success=True,
            data={
                "answer": result.answer,
                "checked_files": result.checked_files,
                "attempts": result.attempts,
            },
        )


class SummarizeRepoAction(QueryProjectAction):
    """Describes a repository's purpose, layout, usage and build."""

    name = "SUMMARIZE_REPO"
    similes = ["SUMMARIZE_REPOSITORY", "REPO_SUMMARY", "DESCRIBE_REPO"]
    description = "Summarize a cloned repository"
    examples = [
        [
            {"user": "{{user1}}", "content": {"text": "Summarize https://github.com/ai16z/eliza"}},
            {"user": "{{agentName}}", "content": {
                "text": "I'll look into the project to find out.",
                "action": "SUMMARIZE_REPO",
            }},
        ],
    ]

    def question_for(self, message: ChatMessage) -> str:
        return SUMMARY_QUESTION
