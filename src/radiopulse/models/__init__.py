"""Pydantic data models for radiopulse."""

from radiopulse.models.config import (
    OrchestratorConfig,
    RealtimeConfig,
    Settings,
    StreamConfig,
    TopicExtractionConfig,
    TopicScoringConfig,
    TranscriptionConfig,
)
from radiopulse.models.segment import Segment
from radiopulse.models.station import StationRef
from radiopulse.models.topic import (
    ExtractedTopic,
    StationTopic,
    Topic,
    TopicConnection,
    TopicMention,
)
from radiopulse.models.transcription import (
    CaptionSegment,
    InvalidTransitionError,
    Transcription,
    TranscriptionStatus,
)

__all__ = [
    "CaptionSegment",
    "ExtractedTopic",
    "InvalidTransitionError",
    "OrchestratorConfig",
    "RealtimeConfig",
    "Segment",
    "Settings",
    "StationRef",
    "StationTopic",
    "StreamConfig",
    "Topic",
    "TopicConnection",
    "TopicExtractionConfig",
    "TopicMention",
    "TopicScoringConfig",
    "Transcription",
    "TranscriptionConfig",
    "TranscriptionStatus",
]
