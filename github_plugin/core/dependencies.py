"""
Dependencies - Builds every collaborator from Settings.

Each factory is cached, so the FastAPI routes and the MCP server share
one instance per process. Services receive their configuration through
constructors; nothing below module level reads settings.
"""

from functools import lru_cache

from github_plugin.core.config import get_settings
from github_plugin.agents.actions import (
    CloneRepoAction,
    CreateFileAction,
    CreatePullRequestAction,
    QueryProjectAction,
    SummarizeRepoAction,
)
from github_plugin.agents.evidence_gatherer import EvidenceGatherer, EvidenceGathererConfig
from github_plugin.agents.plugin import GithubPlugin
from github_plugin.services.embedding_service import EmbeddingService, EmbeddingConfig
from github_plugin.services.github_service import GitHubService, GitHubServiceConfig
from github_plugin.services.indexing_service import IndexingService, IndexingConfig
from github_plugin.services.llm_service import ModelTier, TextGenerationService, TextGenerationConfig
from github_plugin.services.repo_service import RepoService, RepoServiceConfig
from github_plugin.services.store import CodeStore, StoreConfig


@lru_cache()
def get_embedding_service() -> EmbeddingService:
    """Get embedding service instance (fully local, no API keys)."""
    settings = get_settings()
    return EmbeddingService(config=EmbeddingConfig(
        model=settings.embedding_model,
        dimension=settings.embedding_dimension,
        device=settings.embedding_device,
    ))


@lru_cache()
def get_store() -> CodeStore:
    settings = get_settings()
    return CodeStore(config=StoreConfig(
        backend=settings.store_backend,
        persist_directory=settings.store_path,
        collection_prefix=settings.store_collection_prefix,
    ))


@lru_cache()
def get_repo_service() -> RepoService:
    settings = get_settings()
    return RepoService(config=RepoServiceConfig(
        storage_path=settings.repo_storage_path,
        clone_timeout_seconds=settings.repo_clone_timeout_seconds,
    ))


@lru_cache()
def get_text_generation_service() -> TextGenerationService:
    settings = get_settings()
    return TextGenerationService(config=TextGenerationConfig(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        models={
            ModelTier.SMALL: settings.model_small,
            ModelTier.MEDIUM: settings.model_medium,
            ModelTier.LARGE: settings.model_large,
        },
        temperature=settings.llm_temperature,
        timeout_seconds=settings.llm_timeout_seconds,
    ))


@lru_cache()
def get_github_service() -> GitHubService:
    settings = get_settings()
    return GitHubService(config=GitHubServiceConfig(token=settings.github_api_token))


@lru_cache()
def get_indexing_service() -> IndexingService:
    settings = get_settings()
    return IndexingService(
        embedding_service=get_embedding_service(),
        store=get_store(),
        config=IndexingConfig(
            subpath=settings.github_path,
            max_file_size_kb=settings.max_file_size_kb,
        ),
    )


@lru_cache()
def get_evidence_gatherer() -> EvidenceGatherer:
    settings = get_settings()
    return EvidenceGatherer(
        store=get_store(),
        embedding_service=get_embedding_service(),
        llm_service=get_text_generation_service(),
        config=EvidenceGathererConfig(
            max_attempts=settings.evidence_max_attempts,
            top_k=settings.evidence_top_k,
            file_depth=settings.evidence_file_depth,
            max_new_files=settings.evidence_max_new_files,
            max_file_chars=settings.evidence_max_file_chars,
            memory_score_threshold=settings.memory_score_threshold,
        ),
    )


@lru_cache()
def get_plugin() -> GithubPlugin:
    """Get the plugin with every action wired to the shared services."""
    settings = get_settings()
    store = get_store()
    return GithubPlugin([
        CloneRepoAction(get_repo_service(), get_indexing_service()),
        QueryProjectAction(store, get_evidence_gatherer(), settings.question_timeout_seconds),
        SummarizeRepoAction(store, get_evidence_gatherer(), settings.question_timeout_seconds),
        CreateFileAction(store, get_text_generation_service()),
        CreatePullRequestAction(
            store,
            get_embedding_service(),
            get_text_generation_service(),
            get_github_service(),
            branch_prefix=settings.github_branch_prefix,
        ),
    ])
