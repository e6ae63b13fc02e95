"""
Create File Action - Writes a file into a cloned repository.

The model extracts the target path and content from the conversation.
Files may only be written inside a registered repository checkout.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, List, Optional

from github_plugin.agents.actions.lookup import resolve_repository
from github_plugin.agents.base import ActionResult, BaseAction, Callback
from github_plugin.agents.parsing import JSON_OBJECT_FOOTER, parse_json_object_from_text
from github_plugin.api.middleware.error_handler import AppException, InvalidInputError
from github_plugin.models.schemas import ChatMessage, Repository
from github_plugin.services.llm_service import ModelTier
from github_plugin.services.navigator import resolve_in_root

logger = logging.getLogger(__name__)


CREATE_FILE_PROMPT = """You are working in a conversational context with a user. Your task is to extract the information necessary to create a local file based on the user's input. Look for the following details in the conversation:
1. **Path to the File**: The file path where the user wants the file to be created. Paths relative to a source folder are allowed.
2. **Content**: The content the user wants to include in the file.

### Context of Conversation:
{recent_messages}

### Known repositories:
{repositories}

### Instructions:
- If both the file path and content are provided by the user, output them in the JSON format below.
- If no folder is given, use the source folder of the repository being discussed.
- If any required information is missing, leave the field empty.
- The output must strictly follow this JSON format:
{{
  "filePath": "example/path/to/file",
  "content": "Example content to write to the file."
}}
"""


def _write_file(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


class CreateFileAction(BaseAction):
    """Creates a file with content taken from the conversation."""

    name = "CREATE_FILE"
    similes = ["CREATE_FILE_IN_FOLDER", "WRITE_FILE"]
    description = "Create a file with the provided content"

    def __init__(self, store: Any, llm_service: Any):
        self.store = store
        self.llm = llm_service

    async def handle(self, message: ChatMessage, callback: Callback) -> ActionResult:
        repositories = await self.store.list_repositories()
        prompt = CREATE_FILE_PROMPT.format(
            recent_messages="\n".join(message.recent_messages + [message.text]),
            repositories="\n".join(
                f"source folder: {r.local_path}\nsource repo: {r.url}" for r in repositories
            ) or "(none)",
        ) + JSON_OBJECT_FOOTER

        try:
            response = await self.llm.generate_text(prompt, ModelTier.SMALL)
        except AppException as e:
            await self.reply(callback, f"Failed to create file: {e.message}", error=True)
            return ActionResult(success=False, error=e.message)

        extracted = parse_json_object_from_text(response)
        content = extracted.get("content")
        file_path = extracted.get("filePath")

        if not isinstance(content, str) or not content:
            await self.reply(callback, "Content is missing.", error=True)
            return ActionResult(success=False, error="Content is missing")
        if not isinstance(file_path, str) or not file_path.strip():
            await self.reply(callback, "File path is missing.", error=True)
            return ActionResult(success=False, error="File path is missing")

        try:
            default_repository = await resolve_repository(self.store, message.text)
            target = self.resolve_target(file_path.strip(), repositories, default_repository)
            await asyncio.to_thread(_write_file, target, content)
        except InvalidInputError as e:
            await self.reply(callback, e.message, error=True)
            return ActionResult(success=False, error=e.message)
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {e}")
            await self.reply(callback, f"Failed to create file: {e}", error=True)
            return ActionResult(success=False, error=str(e))

        logger.info(f"File created at {target}")
        await self.reply(callback, f"File created at {target}")
        return ActionResult(success=True, data={"path": str(target)})

    @staticmethod
    def resolve_target(
        file_path: str,
        repositories: List[Repository],
        default_repository: Optional[Repository],
    ) -> Path:
        """
        Absolute path of the file to write.

        Absolute paths must lie inside a registered checkout; relative
        paths are resolved against default_repository.

        Raises:
            InvalidInputError: If the path falls outside every checkout.
        """
        path = Path(file_path)
        if path.is_absolute():
            resolved = path.resolve()
            for repository in repositories:
                root = Path(repository.local_path).resolve()
                if resolved == root or root in resolved.parents:
                    return resolved
            raise InvalidInputError(
                f"{file_path} is not inside a cloned repository", field="filePath"
            )

        if default_repository is None:
            raise InvalidInputError(
                "No cloned repository to create the file in", field="filePath"
            )
        try:
            return resolve_in_root(default_repository.local_path, file_path)
        except ValueError as e:
            raise InvalidInputError(str(e), field="filePath") from e
