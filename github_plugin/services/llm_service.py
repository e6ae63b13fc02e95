"""
Text Generation Service - Prompt in, completion out.

RESPONSIBILITY:
Maps a text prompt and a model tier (small / medium / large) to a
generated completion. Backed by the OpenAI SDK; any OpenAI-compatible
endpoint works through openai_base_url.

Failures are not retried here; they surface as GenerationError and end
the calling session.
"""

import logging
from enum import Enum
from typing import Dict, Optional
from dataclasses import dataclass, field

from github_plugin.api.middleware.error_handler import GenerationError

logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant working on GitHub repositories. "
    "Base your answers only on the material provided in the prompt."
)


class ModelTier(str, Enum):
    """Model size class requested by a caller."""
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


@dataclass
class TextGenerationConfig:
    """Configuration for text generation."""
    api_key: str = ""
    base_url: Optional[str] = None
    models: Dict[ModelTier, str] = field(default_factory=lambda: {
        ModelTier.SMALL: "gpt-4o-mini",
        ModelTier.MEDIUM: "gpt-4o",
        ModelTier.LARGE: "gpt-4o",
    })
    temperature: float = 0.2
    timeout_seconds: float = 120.0


class OpenAIProvider:
    """Chat-completions client, created lazily so imports need no API key."""

    def __init__(self, config: TextGenerationConfig):
        self.config = config
        self._client = None

    @property
    def client(self):
        if self._client is None:
            from openai import AsyncOpenAI
            self._client = AsyncOpenAI(
                api_key=self.config.api_key or None,
                base_url=self.config.base_url,
                timeout=self.config.timeout_seconds,
            )
        return self._client

    async def complete(self, prompt: str, model: str, system_prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config.temperature,
        )
        return (response.choices[0].message.content or "").strip()


class TextGenerationService:
    """
    Text Generation Provider used by the agents.

    Usage:
        service = TextGenerationService(TextGenerationConfig(api_key="..."))
        text = await service.generate_text("Summarize ...", ModelTier.SMALL)
    """

    def __init__(
        self,
        config: Optional[TextGenerationConfig] = None,
        provider: Optional[OpenAIProvider] = None,
    ):
        self.config = config or TextGenerationConfig()
        self._provider = provider or OpenAIProvider(self.config)

    def model_for(self, tier: ModelTier) -> str:
        return self.config.models.get(tier) or self.config.models[ModelTier.SMALL]

    async def generate_text(
        self,
        prompt: str,
        tier: ModelTier = ModelTier.SMALL,
        system_prompt: Optional[str] = None,
    ) -> str:
        """
        Generate a completion for prompt.

        Raises:
            GenerationError: If the provider call fails.
        """
        model = self.model_for(tier)
        logger.debug(f"Generating text with {model} ({len(prompt)} prompt chars)")
        try:
            return await self._provider.complete(
                prompt, model, system_prompt or DEFAULT_SYSTEM_PROMPT
            )
        except Exception as e:
            raise GenerationError(f"Text generation failed: {e}") from e
