"""Pluggable AI capabilities selected by configuration."""

from radiopulse.providers.base import (
    ProviderConfigError,
    ProviderError,
    TopicExtractionProvider,
    TranscriptionProvider,
)
from radiopulse.providers.extraction import create_extraction_provider
from radiopulse.providers.transcription import create_transcription_provider

__all__ = [
    "ProviderConfigError",
    "ProviderError",
    "TopicExtractionProvider",
    "TranscriptionProvider",
    "create_extraction_provider",
    "create_transcription_provider",
]
