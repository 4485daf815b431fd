"""Configuration models for each pipeline component."""

from __future__ import annotations

from pydantic import BaseModel, Field

from radiopulse.models.station import StationRef


class StreamConfig(BaseModel):
    """Configuration for one station's capture pipeline."""

    segment_length: int = Field(default=30, ge=1, le=600)  # seconds
    segment_prefix: str = Field(default="segment", min_length=1)
    segment_extension: str = "mp3"
    number_width: int = Field(default=3, ge=1, le=9)
    keep_segments: int = Field(default=10, ge=0)
    embed_audio: bool = False
    stop_timeout_seconds: float = Field(default=5.0, gt=0)


class OrchestratorConfig(BaseModel):
    """Configuration for the stream orchestrator."""

    base_segment_dir: str = "__data/segments"
    stream: StreamConfig = Field(default_factory=StreamConfig)


class TranscriptionConfig(BaseModel):
    """Configuration for the transcription provider."""

    enabled: bool = True
    provider: str = "openai"  # openai | google
    openai_api_key: str | None = None
    openai_model: str = "whisper-1"
    google_api_key: str | None = None
    google_model: str = "gemini-2.0-flash"
    timeout_seconds: float = Field(default=120.0, gt=0)


class TopicExtractionConfig(BaseModel):
    """Configuration for the topic extraction provider."""

    provider: str = "openai"  # openai | google | anthropic
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    google_api_key: str | None = None
    google_model: str = "gemini-2.0-flash"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-6"
    max_tokens: int = Field(default=2048, ge=256, le=8192)
    timeout_seconds: float = Field(default=60.0, gt=0)


class TopicScoringConfig(BaseModel):
    """Thresholds for mention indexing, trend and connection passes."""

    min_text_length: int = Field(default=20, ge=0)
    context_words: int = Field(default=10, ge=0, le=50)
    trend_threshold: int = Field(default=20, ge=0)
    trend_window_hours: int = Field(default=24, ge=1)
    connection_window_days: int = Field(default=7, ge=1)
    min_connection_relevance: float = Field(default=0.3, ge=0.0, le=1.0)
    prune_after_days: int = Field(default=30, ge=1)


class RealtimeConfig(BaseModel):
    """Configuration for the realtime dispatcher."""

    enabled: bool = True
    # Interval = segment_length * multiplier seconds; 0 disables the pass.
    trend_interval_multiplier: float = Field(default=2.0, ge=0.0)
    connection_interval_multiplier: float = Field(default=2.0, ge=0.0)
    fallback_timer: bool = True


class Settings(BaseModel):
    """All component configurations."""

    orchestrator: OrchestratorConfig = Field(default_factory=OrchestratorConfig)
    transcription: TranscriptionConfig = Field(default_factory=TranscriptionConfig)
    topic_extraction: TopicExtractionConfig = Field(default_factory=TopicExtractionConfig)
    topics: TopicScoringConfig = Field(default_factory=TopicScoringConfig)
    realtime: RealtimeConfig = Field(default_factory=RealtimeConfig)
    stations: list[StationRef] = Field(default_factory=list)
