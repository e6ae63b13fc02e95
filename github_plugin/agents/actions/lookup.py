"""
Repository lookup shared by the actions.
"""

import logging
from typing import Any, Optional

from github_plugin.models.schemas import Repository
from github_plugin.services.repo_service import extract_github_url

logger = logging.getLogger(__name__)

SOURCE_REPO_QUERY = "Find Source Repo, example source: /path/to/repo"


async def resolve_repository(store: Any, text: str) -> Optional[Repository]:
    """
    Repository named by a GitHub URL in text, else the most recently
    registered one. None when nothing matches.
    """
    url = extract_github_url(text)
    if url:
        return await store.get_repository_by_url(url)

    repositories = await store.list_repositories()
    return repositories[0] if repositories else None


async def find_source_repository(store: Any, embedding_service: Any, text: str) -> Optional[Repository]:
    """
    Repository named by a GitHub URL in text, else the registered
    repository closest to the source-repo query.
    """
    url = extract_github_url(text)
    if url:
        return await store.get_repository_by_url(url)

    embedding = await embedding_service.embed(SOURCE_REPO_QUERY)
    hits = await store.search_repositories(embedding, top_k=1)
    if not hits:
        return None
    repository, score = hits[0]
    logger.debug(f"Source repository {repository.full_name} (score {score:.2f})")
    return repository
