"""Topic extraction providers: OpenAI, Gemini (OpenAI-compatible) and Claude."""

from __future__ import annotations

import openai

from radiopulse.models.config import TopicExtractionConfig
from radiopulse.providers.base import (
    ProviderConfigError,
    ProviderError,
    TopicExtractionProvider,
)
from radiopulse.providers.transcription import GOOGLE_OPENAI_BASE_URL

EXTRACTION_SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts topics from radio transcriptions."
)


class OpenAICompatibleExtraction:
    """Chat-completions extraction for OpenAI and Gemini's OpenAI endpoint."""

    def __init__(
        self,
        name: str,
        api_key: str,
        model: str,
        *,
        base_url: str | None = None,
        max_tokens: int = 2048,
        timeout: float = 60.0,
    ):
        self.name = name
        self.model = model
        self.max_tokens = max_tokens
        self._client = openai.AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )

    async def complete(self, prompt: str) -> str:
        kwargs = {}
        if self.name == "openai":
            # JSON mode wraps the array in an object; the engine unwraps it
            kwargs["response_format"] = {"type": "json_object"}
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[
                    {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                **kwargs,
            )
        except openai.OpenAIError as e:
            raise ProviderError(self.name, str(e)) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class ClaudeExtraction:
    """Topic extraction via the Claude API."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-6",
        *,
        max_tokens: int = 2048,
        timeout: float = 60.0,
    ):
        try:
            import anthropic
        except ImportError:
            raise ProviderConfigError(
                "anthropic package not installed. "
                "Install with: pip install radiopulse[anthropic]"
            ) from None

        self._anthropic = anthropic
        self.model = model
        self.max_tokens = max_tokens
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        )

    async def complete(self, prompt: str) -> str:
        try:
            message = await self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=EXTRACTION_SYSTEM_PROMPT,
                messages=[{"role": "user", "content": prompt}],
            )
        except self._anthropic.AnthropicError as e:
            raise ProviderError(self.name, str(e)) from e

        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )


def create_extraction_provider(config: TopicExtractionConfig) -> TopicExtractionProvider:
    """Build the configured topic extraction provider."""
    if config.provider == "openai":
        if not config.openai_api_key:
            raise ProviderConfigError("OpenAI API key is required for topic extraction")
        return OpenAICompatibleExtraction(
            "openai",
            config.openai_api_key,
            config.openai_model,
            max_tokens=config.max_tokens,
            timeout=config.timeout_seconds,
        )
    if config.provider == "google":
        if not config.google_api_key:
            raise ProviderConfigError("Google API key is required for topic extraction")
        return OpenAICompatibleExtraction(
            "google",
            config.google_api_key,
            config.google_model,
            base_url=GOOGLE_OPENAI_BASE_URL,
            max_tokens=config.max_tokens,
            timeout=config.timeout_seconds,
        )
    if config.provider == "anthropic":
        if not config.anthropic_api_key:
            raise ProviderConfigError("Anthropic API key is required for topic extraction")
        return ClaudeExtraction(
            config.anthropic_api_key,
            config.anthropic_model,
            max_tokens=config.max_tokens,
            timeout=config.timeout_seconds,
        )
    raise ProviderConfigError(f"Unknown topic extraction provider: {config.provider}")
