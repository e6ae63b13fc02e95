"""
Embedding Service - Local vector embeddings using Sentence Transformers.

RESPONSIBILITY:
Maps arbitrary text (file contents, questions, repository descriptions)
to fixed-length vectors for similarity search.

Runs locally: the model is downloaded once and loaded lazily on the
first call. Encoding is CPU/GPU bound, so it runs in a worker thread
to keep the event loop responsive.
"""

import asyncio
import hashlib
import logging
from typing import Dict, List, Optional
from dataclasses import dataclass

from github_plugin.api.middleware.error_handler import EmbeddingError

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """Configuration for embedding service."""
    model: str = "all-MiniLM-L6-v2"
    dimension: int = 384
    batch_size: int = 64
    cache_enabled: bool = True
    device: str = "cpu"  # "cpu", "cuda", or "mps"


class SentenceTransformerProvider:
    """Thin wrapper around a lazily loaded SentenceTransformer model."""

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", device: str = "cpu"):
        self.model_name = model_name
        self.device = device
        self._model = None

    @property
    def model(self):
        """Lazy load the model on first use."""
        if self._model is None:
            logger.info(f"Loading embedding model: {self.model_name}")
            from sentence_transformers import SentenceTransformer
            self._model = SentenceTransformer(self.model_name, device=self.device)
            logger.info(f"Model loaded on device: {self.device}")
        return self._model

    def encode(self, texts: List[str]) -> List[List[float]]:
        vectors = self.model.encode(texts, convert_to_numpy=True)
        return [[float(x) for x in vector] for vector in vectors]


class EmbeddingService:
    """
    Embedding Provider with an in-process cache.

    Usage:
        service = EmbeddingService(EmbeddingConfig())
        vector = await service.embed("def hello(): pass")
        vectors = await service.embed_many(["a", "b"])
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        provider: Optional[SentenceTransformerProvider] = None,
    ):
        self.config = config or EmbeddingConfig()
        self._provider = provider or SentenceTransformerProvider(
            model_name=self.config.model,
            device=self.config.device,
        )
        self._cache: Optional[Dict[str, List[float]]] = (
            {} if self.config.cache_enabled else None
        )

    async def embed(self, text: str) -> List[float]:
        """
        Embed a single text.

        Raises:
            EmbeddingError: If the model fails to load or encode.
        """
        vectors = await self.embed_many([text])
        return vectors[0]

    async def embed_many(self, texts: List[str]) -> List[List[float]]:
        """Embed several texts, batching whatever is not cached."""
        results: List[Optional[List[float]]] = [None] * len(texts)
        pending: List[int] = []

        for i, text in enumerate(texts):
            cached = self._cache_get(text)
            if cached is not None:
                results[i] = cached
            else:
                pending.append(i)

        for start in range(0, len(pending), self.config.batch_size):
            batch = pending[start:start + self.config.batch_size]
            batch_texts = [texts[i] for i in batch]
            try:
                vectors = await asyncio.to_thread(self._provider.encode, batch_texts)
            except Exception as e:
                raise EmbeddingError(f"Embedding failed: {e}") from e

            for i, vector in zip(batch, vectors):
                results[i] = vector
                self._cache_put(texts[i], vector)

        return results

    def _cache_get(self, text: str) -> Optional[List[float]]:
        if self._cache is None:
            return None
        return self._cache.get(self._cache_key(text))

    def _cache_put(self, text: str, vector: List[float]) -> None:
        if self._cache is not None:
            self._cache[self._cache_key(text)] = vector

    def _cache_key(self, text: str) -> str:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()

    @property
    def dimension(self) -> int:
        return self.config.dimension

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()
