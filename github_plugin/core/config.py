"""
Application Configuration - Environment settings and constants.

Loads configuration from environment variables (or a local .env file)
with sensible defaults. Uses Pydantic Settings for validation.

Only the factories in core.dependencies read these settings; every
service receives its own config object through its constructor.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """
    Plugin settings loaded from environment variables.

    Usage:
        from github_plugin.core.config import get_settings
        settings = get_settings()
    """

    # Application
    app_name: str = "GitHub Agent Plugin"
    app_version: str = "0.3.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # HTTP Server Configuration
    api_prefix: str = "/api/v1"
    allowed_origins: List[str] = ["*"]
    server_host: str = "0.0.0.0"
    server_port: int = 8000

    # Embedding Configuration (local sentence-transformers model)
    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_dimension: int = 384
    embedding_device: str = "cpu"  # "cpu", "cuda", or "mps"

    # Store Configuration
    store_backend: str = "chroma"  # chroma or memory
    store_path: str = "./data/store"
    store_collection_prefix: str = "github_plugin"

    # Repository Configuration
    repo_storage_path: str = "./.repos"
    repo_clone_timeout_seconds: int = 300
    github_path: str = ""  # optional subpath that scopes ingestion
    max_file_size_kb: int = 500

    # Text Generation Configuration
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    model_small: str = "gpt-4o-mini"
    model_medium: str = "gpt-4o"
    model_large: str = "gpt-4o"
    llm_temperature: float = 0.2
    llm_timeout_seconds: float = 120.0

    # GitHub Configuration
    github_api_token: str = ""
    github_branch_prefix: str = "agent/"

    # Evidence Gatherer Configuration
    evidence_max_attempts: int = 2
    evidence_top_k: int = 5
    evidence_file_depth: int = 3
    evidence_max_new_files: int = 5
    evidence_max_file_chars: int = 20000
    memory_score_threshold: float = 0.85
    question_timeout_seconds: float = 300.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
