"""Protocols for the external persistence store and station catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol

from radiopulse.models.station import StationRef
from radiopulse.models.topic import StationTopic, Topic, TopicConnection, TopicMention
from radiopulse.models.transcription import Transcription, TranscriptionStatus

TranscriptionListener = Callable[[str], None]


class Subscription(Protocol):
    """Handle returned by a change-notification subscription."""

    def unsubscribe(self) -> None: ...


class PersistenceGateway(Protocol):
    """Protocol of the store holding transcriptions and the topic graph.

    Upserts are keyed as follows: Topic by normalized name, StationTopic by
    (station, topic), TopicConnection by (topic, canonical station pair).
    TopicMention rows are append-only. Every newly inserted Transcription
    produces exactly one notification carrying its id.
    """

    async def insert_transcription(self, transcription: Transcription) -> Transcription: ...

    async def update_transcription_status(
        self, transcription_id: str, status: TranscriptionStatus, *, error: str | None = None
    ) -> None: ...

    async def get_transcription(self, transcription_id: str) -> Transcription | None: ...

    async def list_transcriptions_since(
        self, cutoff: datetime, *, limit: int = 100
    ) -> list[Transcription]: ...

    async def get_station_name(self, station_id: str) -> str | None: ...

    async def upsert_topic(self, name: str, normalized_name: str) -> Topic: ...

    async def upsert_station_topic(
        self, station_id: str, topic_id: str, relevance_score: float, mentioned_at: datetime
    ) -> StationTopic: ...

    async def insert_topic_mentions(self, mentions: list[TopicMention]) -> None: ...

    async def list_topics(self) -> list[Topic]: ...

    async def list_station_topics(self) -> list[StationTopic]: ...

    async def reset_trending(self) -> None: ...

    async def update_topic_trend(self, topic_id: str, trend_score: int, is_trending: bool) -> None: ...

    async def deactivate_connections(self) -> None: ...

    async def upsert_topic_connection(
        self, topic_id: str, station_a: str, station_b: str, strength: float
    ) -> TopicConnection: ...

    async def delete_inactive_connections(self, older_than: datetime) -> int: ...

    def subscribe_transcriptions(self, listener: TranscriptionListener) -> Subscription: ...


class StationCatalog(Protocol):
    """Source of already-vetted stations."""

    async def list_online_stations(
        self, station_ids: list[str] | None = None
    ) -> list[StationRef]: ...
