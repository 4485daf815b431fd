"""Capability protocols for AI providers."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from radiopulse.models.transcription import CaptionSegment


class ProviderError(Exception):
    """Raised when a provider call fails in transport (timeout, network, API)."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class ProviderConfigError(Exception):
    """Raised when a provider cannot be constructed from configuration."""


class TranscriptionProvider(Protocol):
    """Turns an audio file into ordered captions.

    Malformed upstream responses yield ``[]``; transport failures raise
    ProviderError.
    """

    name: str

    async def transcribe(self, audio_path: Path) -> list[CaptionSegment]: ...


class TopicExtractionProvider(Protocol):
    """Completes a topic-extraction prompt and returns the raw model text."""

    name: str

    async def complete(self, prompt: str) -> str: ...
