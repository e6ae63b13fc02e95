"""
Indexing Service - Registers repositories and embeds their files.

RESPONSIBILITY:
1. Register a cloned repository in the store
2. Walk its files (optionally scoped to a configured subpath)
3. Fingerprint every file (sha256 of its content)
4. Re-embed a file only when its fingerprint differs from the stored one
5. Drop records of files that disappeared from the checkout

The skip rule keeps exactly one record per (repository, relative path)
and bounds embedding cost to changed files.
"""

from pathlib import Path
from typing import Any, List, Optional, Set
from dataclasses import dataclass, field
from datetime import datetime
import asyncio
import hashlib
import logging

from github_plugin.models.schemas import (
    IndexedFile,
    Repository,
    file_id_for,
    repository_id_for,
)
from github_plugin.services.navigator import iter_repository_files, read_text_file
from github_plugin.services.repo_service import RepoInfo

logger = logging.getLogger(__name__)


@dataclass
class IndexingConfig:
    """Configuration for indexing service."""
    subpath: str = ""
    max_file_size_kb: int = 500


@dataclass
class IndexingResult:
    """Result of an ingestion run."""
    repository_id: str
    total_files: int = 0
    embedded_files: int = 0
    unchanged_files: int = 0
    skipped_files: int = 0
    removed_files: int = 0
    errors: List[str] = field(default_factory=list)
    duration_seconds: float = 0.0


def content_fingerprint(content: str) -> str:
    """Deterministic content hash used to detect changed files."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class IndexingService:
    """
    Repository Ingestor.

    Usage:
        service = IndexingService(embedding_service, store)
        repository = await service.register_repository(repo_info)
        result = await service.index_repository(repository)
    """

    def __init__(
        self,
        embedding_service: Any,
        store: Any,
        config: Optional[IndexingConfig] = None
    ):
        self.embedding_service = embedding_service
        self.store = store
        self.config = config or IndexingConfig()

    async def register_repository(self, repo_info: RepoInfo) -> Repository:
        """Store the repository record for a clone, reusing an existing one."""
        repository = Repository(
            id=repository_id_for(repo_info.url),
            url=repo_info.url,
            owner=repo_info.owner,
            name=repo_info.name,
            local_path=repo_info.local_path,
        )
        existing = await self.store.get_repository(repository.id)
        if existing is not None:
            return existing

        embedding = await self.embedding_service.embed(repository.describe())
        return await self.store.save_repository(repository, embedding)

    async def index_repository(self, repository: Repository) -> IndexingResult:
        """
        Ingest every file of a repository.

        Unreadable or binary files are counted as skipped. Embedding
        failures propagate as EmbeddingError.
        """
        start_time = datetime.now()
        result = IndexingResult(repository_id=repository.id)

        paths = await asyncio.to_thread(
            lambda: list(iter_repository_files(
                repository.local_path,
                subpath=self.config.subpath,
                max_file_size_kb=self.config.max_file_size_kb,
            ))
        )
        result.total_files = len(paths)

        for relative_path in paths:
            absolute_path = Path(repository.local_path) / relative_path
            try:
                content = await asyncio.to_thread(read_text_file, str(absolute_path))
            except (OSError, UnicodeDecodeError) as e:
                logger.debug(f"Skipping {relative_path}: {e}")
                result.skipped_files += 1
                result.errors.append(f"{relative_path}: {e}")
                continue

            if await self.index_file(repository, relative_path, content):
                result.embedded_files += 1
            else:
                result.unchanged_files += 1

        result.removed_files = await self._remove_stale(repository, set(paths))

        result.duration_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Indexed {repository.full_name}: {result.embedded_files} embedded, "
            f"{result.unchanged_files} unchanged, {result.skipped_files} skipped, "
            f"{result.removed_files} removed"
        )
        return result

    async def index_file(self, repository: Repository, relative_path: str, content: str) -> bool:
        """
        Apply the fingerprint skip rule to one file.

        Returns:
            True if the file was (re-)embedded, False if it was unchanged.
        """
        file_id = file_id_for(repository.owner, repository.name, relative_path)
        fingerprint = content_fingerprint(content)

        existing = await self.store.get_file(file_id)
        if existing is not None and existing.content_hash == fingerprint:
            return False

        embedding = await self.embedding_service.embed(content)
        await self.store.upsert_file(IndexedFile(
            id=file_id,
            repository_id=repository.id,
            name=Path(relative_path).name,
            relative_path=relative_path,
            content_hash=fingerprint,
            embedding=embedding,
        ))
        return True

    async def _remove_stale(self, repository: Repository, present: Set[str]) -> int:
        """Drop records of files that no longer exist within the indexed scope."""
        scope = self.config.subpath.strip("/")
        stale = [
            file_id
            for path, file_id in (await self.store.list_file_paths(repository.id)).items()
            if path not in present and (not scope or path.startswith(scope + "/"))
        ]
        if stale:
            await self.store.delete_files(stale)
            logger.info(f"Removed {len(stale)} stale records of {repository.full_name}")
        return len(stale)
