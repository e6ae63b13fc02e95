#!/usr/bin/env python3
"""
MCP Server (stdio) - GitHub Agent Plugin actions as MCP tools.

Every plugin action (CLONE_REPO, EXPLAIN_PROJECT, SUMMARIZE_REPO,
CREATE_FILE, CREATE_PULL_REQUEST) is exposed as one tool. A tool call
runs the action on the given message and returns the transcript of
everything the action replied.

Install:
    pip install github-agent-plugin

Add to an MCP client config:
    {
      "mcpServers": {
        "github-agent-plugin": {
          "command": "github-plugin-mcp",
          "env": {"OPENAI_API_KEY": "...", "GITHUB_API_TOKEN": "..."}
        }
      }
    }
"""

import asyncio
import logging
import sys
from typing import Any, List

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool
from pydantic import BaseModel, Field, ValidationError

from github_plugin.agents.plugin import GithubPlugin
from github_plugin.core.config import get_settings
from github_plugin.core.dependencies import get_plugin
from github_plugin.models.schemas import ChatMessage, ChatResponse

logger = logging.getLogger("mcp_github_plugin")


# =============================================================================
# INPUT/OUTPUT SCHEMAS
# =============================================================================


class ActionToolInput(BaseModel):
    text: str = Field(..., min_length=1, max_length=4000, description="Chat message text")
    recent_messages: List[str] = Field(
        default_factory=list,
        description="Recent conversation messages, oldest first",
    )


class ActionToolOutput(BaseModel):
    success: bool
    action: str
    responses: List[ChatResponse] = Field(default_factory=list)
    error: str | None = None


TOOL_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "text": {
            "type": "string",
            "description": "The chat message, e.g. 'Clone https://github.com/owner/repo'"
        },
        "recent_messages": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Recent conversation messages, oldest first"
        }
    },
    "required": ["text"]
}


# =============================================================================
# MCP SERVER IMPLEMENTATION
# =============================================================================


def create_mcp_server(plugin: GithubPlugin) -> Server:
    """Create the MCP server with one tool per plugin action."""
    server = Server("github-agent-plugin")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name=action.name,
                description=(
                    f"{action.description}. "
                    f"Also known as: {', '.join(action.similes)}"
                    if action.similes else action.description
                ),
                inputSchema=TOOL_INPUT_SCHEMA,
            )
            for action in plugin.actions
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        return await handle_action(plugin, name, arguments)

    return server


async def handle_action(plugin: GithubPlugin, name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Run one action and return its transcript as JSON text."""
    action = plugin.get_action(name)

    try:
        input_data = ActionToolInput(**(arguments or {}))
    except ValidationError as e:
        output = ActionToolOutput(
            success=False, action=action.name, error=f"Invalid input: {e.errors()}"
        )
        return [TextContent(type="text", text=output.model_dump_json(indent=2))]

    responses: List[ChatResponse] = []

    async def callback(response: ChatResponse) -> None:
        responses.append(response)

    message = ChatMessage(text=input_data.text, recent_messages=input_data.recent_messages)
    logger.info(f"Running {action.name}: {input_data.text[:100]}")

    try:
        result = await action.handle(message, callback)
        output = ActionToolOutput(
            success=result.success,
            action=action.name,
            responses=responses,
            error=result.error,
        )
    except Exception as e:
        logger.exception(f"Error in {action.name}: {e}")
        output = ActionToolOutput(
            success=False, action=action.name, responses=responses, error=str(e)
        )

    return [TextContent(type="text", text=output.model_dump_json(indent=2))]


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


async def main():
    """Main async entry point for the MCP server."""
    settings = get_settings()

    # stdout is for the MCP protocol
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    logger.info(f"Starting {settings.app_name} MCP Server v{settings.app_version}")
    logger.info(f"Embedding model: {settings.embedding_model}, store: {settings.store_backend}")

    server = create_mcp_server(get_plugin())

    logger.info("MCP Server ready, waiting for connections...")

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def run():
    """Synchronous entry point for console script."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
