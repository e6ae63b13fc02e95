"""Tests for the embedding and text generation providers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from github_plugin.api.middleware.error_handler import EmbeddingError, GenerationError
from github_plugin.services.embedding_service import EmbeddingConfig, EmbeddingService
from github_plugin.services.llm_service import (
    DEFAULT_SYSTEM_PROMPT,
    ModelTier,
    TextGenerationConfig,
    TextGenerationService,
)

# ── EmbeddingService ─────────────────────────────────────────────────────────


class TestEmbeddingService:
    @pytest.mark.asyncio
    async def test_cache_avoids_recompute(self):
        provider = MagicMock()
        provider.encode.side_effect = lambda texts: [[float(len(t)), 1.0] for t in texts]
        service = EmbeddingService(EmbeddingConfig(), provider=provider)

        first = await service.embed("hello")
        second = await service.embed("hello")

        assert first == second == [5.0, 1.0]
        assert provider.encode.call_count == 1

    @pytest.mark.asyncio
    async def test_embed_many_batches_uncached(self):
        provider = MagicMock()
        provider.encode.side_effect = lambda texts: [[1.0] for _ in texts]
        service = EmbeddingService(EmbeddingConfig(batch_size=2), provider=provider)

        vectors = await service.embed_many(["a", "b", "c"])

        assert len(vectors) == 3
        assert provider.encode.call_count == 2

    @pytest.mark.asyncio
    async def test_failure_wrapped(self):
        provider = MagicMock()
        provider.encode.side_effect = RuntimeError("no model")
        service = EmbeddingService(EmbeddingConfig(), provider=provider)

        with pytest.raises(EmbeddingError, match="no model"):
            await service.embed("x")


# ── TextGenerationService ────────────────────────────────────────────────────


class TestTextGenerationService:
    @pytest.mark.asyncio
    async def test_tier_selects_model(self):
        provider = MagicMock()
        provider.complete = AsyncMock(return_value="done")
        config = TextGenerationConfig(models={
            ModelTier.SMALL: "small-model",
            ModelTier.MEDIUM: "medium-model",
            ModelTier.LARGE: "large-model",
        })
        service = TextGenerationService(config, provider=provider)

        assert await service.generate_text("hi", ModelTier.MEDIUM) == "done"
        provider.complete.assert_awaited_once_with("hi", "medium-model", DEFAULT_SYSTEM_PROMPT)

    def test_missing_tier_falls_back_to_small(self):
        service = TextGenerationService(
            TextGenerationConfig(models={ModelTier.SMALL: "small-model"}), provider=MagicMock()
        )
        assert service.model_for(ModelTier.LARGE) == "small-model"

    @pytest.mark.asyncio
    async def test_failure_wrapped(self):
        provider = MagicMock()
        provider.complete = AsyncMock(side_effect=ConnectionError("refused"))
        service = TextGenerationService(TextGenerationConfig(), provider=provider)

        with pytest.raises(GenerationError, match="refused"):
            await service.generate_text("hi")
