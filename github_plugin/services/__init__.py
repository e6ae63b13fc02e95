"""
Services Layer for the GitHub Agent Plugin
==========================================

Services wrap the external collaborators the agents depend on:

- RepoService: Parses GitHub URLs and clones repositories
- EmbeddingService: Maps text to vectors (sentence-transformers)
- TextGenerationService: Maps prompts to completions (OpenAI SDK)
- CodeStore: Repositories, indexed files and evidence memories
- IndexingService: Fingerprint-aware repository ingestion
- GitHubService: Branch / commit / push and pull requests

DEPENDENCY FLOW:
----------------
    EmbeddingService ──┐
                       ├──► IndexingService
    CodeStore ─────────┘
         │
         └──► EvidenceGatherer (with TextGenerationService)
"""

from github_plugin.services.repo_service import RepoService
from github_plugin.services.embedding_service import EmbeddingService
from github_plugin.services.llm_service import TextGenerationService, ModelTier
from github_plugin.services.store import CodeStore
from github_plugin.services.indexing_service import IndexingService
from github_plugin.services.github_service import GitHubService

__all__ = [
    "RepoService",
    "EmbeddingService",
    "TextGenerationService",
    "ModelTier",
    "CodeStore",
    "IndexingService",
    "GitHubService",
]
