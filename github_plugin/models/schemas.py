"""
Core Domain Schemas - Shared data models used across the plugin.
"""

from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime, timezone
import uuid


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def repository_id_for(url: str) -> str:
    """Deterministic repository id, so registering a URL twice is a no-op."""
    url = url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]
    return str(uuid.uuid5(uuid.NAMESPACE_URL, url))


def file_id_for(owner: str, name: str, relative_path: str) -> str:
    """Deterministic id for the (repository, relative path) key."""
    key = f"github-{owner}-{name}-{relative_path}"
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


def memory_id_for(repository_id: str, question: str) -> str:
    """Deterministic id for a remembered question of a repository."""
    key = f"memory-{repository_id}-{question.strip().lower()}"
    return str(uuid.uuid5(uuid.NAMESPACE_URL, key))


class Repository(BaseModel):
    """A cloned repository registered in the store."""
    id: str
    url: str
    owner: str
    name: str
    local_path: str
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def describe(self) -> str:
        """Text used to embed the repository for source lookups."""
        return (
            f"Repository {self.full_name} cloned from {self.url}. "
            f"Source folder: {self.local_path}"
        )


class IndexedFile(BaseModel):
    """A file of a repository with its content fingerprint and embedding."""
    id: str
    repository_id: str
    name: str
    relative_path: str
    content_hash: str
    embedding: List[float]


class EvidenceMemory(BaseModel):
    """Files that were sufficient to answer a question, kept for reuse."""
    id: str = ""
    repository_id: str
    question: str
    paths: List[str]
    embedding: List[float]
    created_at: datetime = Field(default_factory=_utcnow)

    def model_post_init(self, __context) -> None:
        if not self.id:
            self.id = memory_id_for(self.repository_id, self.question)


class SimilarityMatch(BaseModel):
    """A single similarity search hit over indexed files."""
    path: str
    score: float


class ChatMessage(BaseModel):
    """An incoming chat message routed to an action."""
    text: str
    user_id: Optional[str] = None
    room_id: Optional[str] = None
    recent_messages: List[str] = Field(default_factory=list)


class ChatResponse(BaseModel):
    """A message delivered back to the conversation."""
    text: str
    error: bool = False
    action: Optional[str] = None
