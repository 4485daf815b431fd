"""Topic graph models: topics, station edges, connections and mentions."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExtractedTopic(BaseModel):
    """A topic as returned by the extraction provider."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    normalized_name: str = Field(alias="normalizedName")
    relevance_score: float = Field(alias="relevanceScore", ge=0.0, le=1.0)

    @field_validator("name", "normalized_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("relevance_score", mode="before")
    @classmethod
    def _numeric_score(cls, value: object) -> object:
        # "0.8" or True are not scores
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("relevanceScore must be a number")
        return value


class Topic(BaseModel):
    """A normalized discussion subject."""

    id: str
    name: str
    normalized_name: str
    is_trending: bool = False
    trend_score: int = 0
    created_at: datetime = Field(default_factory=_utcnow)


class StationTopic(BaseModel):
    """Weighted edge between one station and one topic."""

    station_id: str
    topic_id: str
    relevance_score: float
    mention_count: int = 1
    first_mentioned_at: datetime
    last_mentioned_at: datetime


class TopicConnection(BaseModel):
    """Edge between two stations sharing recent discussion of a topic."""

    topic_id: str
    station_a: str
    station_b: str
    strength: float
    active: bool = True
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.topic_id, self.station_a, self.station_b)


class TopicMention(BaseModel):
    """One literal occurrence of a topic inside a transcription."""

    transcription_id: str
    topic_id: str
    match_text: str
    context_before: str = ""
    context_after: str = ""
    segment_index: int
    position: int
    confidence: float = 1.0


def canonical_pair(station_a: str, station_b: str) -> tuple[str, str]:
    """Order a station pair so that the first id sorts lower."""
    if station_a == station_b:
        raise ValueError(f"A connection needs two distinct stations, got {station_a!r} twice")
    return (station_a, station_b) if station_a < station_b else (station_b, station_a)
