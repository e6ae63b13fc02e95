"""
API Request Models - Pydantic models for request validation.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from github_plugin.models.schemas import ChatMessage


class ActionRequest(BaseModel):
    """
    A chat message to run through a plugin action.

    Example:
        {
            "text": "Clone this repository: https://github.com/owner/repo",
            "room_id": "general"
        }
    """
    text: str = Field(
        ...,
        min_length=1,
        max_length=4000,
        description="Chat message text",
        examples=["What language is this project written in?"]
    )
    user_id: Optional[str] = Field(default=None, description="Sender id")
    room_id: Optional[str] = Field(default=None, description="Conversation id")
    recent_messages: List[str] = Field(
        default_factory=list,
        description="Recent conversation messages, oldest first"
    )

    @field_validator("text")
    @classmethod
    def strip_text(cls, v: str) -> str:
        """Reject whitespace-only messages."""
        v = v.strip()
        if not v:
            raise ValueError("Message text must not be blank")
        return v

    def to_message(self) -> ChatMessage:
        return ChatMessage(
            text=self.text,
            user_id=self.user_id,
            room_id=self.room_id,
            recent_messages=self.recent_messages,
        )
