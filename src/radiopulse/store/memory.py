"""In-memory reference store implementing the gateway and catalog protocols.

Single event-loop use only. Enforces the same uniqueness rules the external
store does so the topic engine behaves identically against either.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from radiopulse.models.station import StationRef
from radiopulse.models.topic import (
    StationTopic,
    Topic,
    TopicConnection,
    TopicMention,
    canonical_pair,
)
from radiopulse.models.transcription import Transcription, TranscriptionStatus
from radiopulse.store.base import TranscriptionListener
from radiopulse.utils.log import log_error


class MemorySubscription:
    """Subscription handle for MemoryStore listeners."""

    def __init__(self, store: MemoryStore, listener: TranscriptionListener):
        self._store = store
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._store._listeners.remove(self._listener)
            self.active = False


class MemoryStore:
    """Dict-backed PersistenceGateway and StationCatalog."""

    def __init__(self, stations: list[StationRef] | None = None):
        self.stations: dict[str, StationRef] = {s.id: s for s in stations or []}
        self.transcriptions: dict[str, Transcription] = {}
        self.topics: dict[str, Topic] = {}
        self._topics_by_key: dict[str, str] = {}
        self.station_topics: dict[tuple[str, str], StationTopic] = {}
        self.connections: dict[tuple[str, str, str], TopicConnection] = {}
        self.mentions: list[TopicMention] = []
        self._listeners: list[TranscriptionListener] = []

    # Catalog

    def add_station(self, station: StationRef) -> None:
        self.stations[station.id] = station

    async def list_online_stations(
        self, station_ids: list[str] | None = None
    ) -> list[StationRef]:
        wanted = set(station_ids) if station_ids else None
        return [
            s for s in self.stations.values()
            if s.is_online and (wanted is None or s.id in wanted)
        ]

    async def get_station_name(self, station_id: str) -> str | None:
        station = self.stations.get(station_id)
        return station.name if station else None

    # Transcriptions

    async def insert_transcription(self, transcription: Transcription) -> Transcription:
        row = transcription.model_copy(deep=True)
        row.id = row.id or str(uuid.uuid4())
        if row.id in self.transcriptions:
            raise ValueError(f"Transcription {row.id} already exists")
        self.transcriptions[row.id] = row
        self._notify(row.id)
        return row.model_copy(deep=True)

    async def update_transcription_status(
        self, transcription_id: str, status: TranscriptionStatus, *, error: str | None = None
    ) -> None:
        row = self.transcriptions.get(transcription_id)
        if row is None:
            raise KeyError(f"Transcription {transcription_id} not found")
        row.transition(status, error=error)

    async def get_transcription(self, transcription_id: str) -> Transcription | None:
        row = self.transcriptions.get(transcription_id)
        return row.model_copy(deep=True) if row else None

    async def list_transcriptions_since(
        self, cutoff: datetime, *, limit: int = 100
    ) -> list[Transcription]:
        rows = [t for t in self.transcriptions.values() if t.created_at > cutoff]
        rows.sort(key=lambda t: t.created_at, reverse=True)
        return [t.model_copy(deep=True) for t in rows[:limit]]

    def subscribe_transcriptions(self, listener: TranscriptionListener) -> MemorySubscription:
        self._listeners.append(listener)
        return MemorySubscription(self, listener)

    def _notify(self, transcription_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(transcription_id)
            except Exception as e:
                log_error(f"Transcription listener failed for {transcription_id}: {e}")

    # Topics

    async def upsert_topic(self, name: str, normalized_name: str) -> Topic:
        topic_id = self._topics_by_key.get(normalized_name)
        if topic_id is not None:
            # first-seen display name wins
            return self.topics[topic_id].model_copy()
        topic = Topic(id=str(uuid.uuid4()), name=name, normalized_name=normalized_name)
        self.topics[topic.id] = topic
        self._topics_by_key[normalized_name] = topic.id
        return topic.model_copy()

    async def upsert_station_topic(
        self, station_id: str, topic_id: str, relevance_score: float, mentioned_at: datetime
    ) -> StationTopic:
        if topic_id not in self.topics:
            raise KeyError(f"Topic {topic_id} not found")
        key = (station_id, topic_id)
        edge = self.station_topics.get(key)
        if edge is None:
            edge = StationTopic(
                station_id=station_id,
                topic_id=topic_id,
                relevance_score=relevance_score,
                mention_count=1,
                first_mentioned_at=mentioned_at,
                last_mentioned_at=mentioned_at,
            )
            self.station_topics[key] = edge
        else:
            edge.relevance_score = relevance_score
            edge.last_mentioned_at = mentioned_at
            edge.mention_count += 1
        return edge.model_copy()

    async def insert_topic_mentions(self, mentions: list[TopicMention]) -> None:
        self.mentions.extend(m.model_copy() for m in mentions)

    async def list_topics(self) -> list[Topic]:
        return [t.model_copy() for t in self.topics.values()]

    async def list_station_topics(self) -> list[StationTopic]:
        return [e.model_copy() for e in self.station_topics.values()]

    async def reset_trending(self) -> None:
        for topic in self.topics.values():
            topic.is_trending = False

    async def update_topic_trend(self, topic_id: str, trend_score: int, is_trending: bool) -> None:
        topic = self.topics[topic_id]
        topic.trend_score = trend_score
        topic.is_trending = is_trending

    # Connections

    async def deactivate_connections(self) -> None:
        for connection in self.connections.values():
            connection.active = False

    async def upsert_topic_connection(
        self, topic_id: str, station_a: str, station_b: str, strength: float
    ) -> TopicConnection:
        station_a, station_b = canonical_pair(station_a, station_b)
        key = (topic_id, station_a, station_b)
        now = datetime.now(timezone.utc)
        connection = self.connections.get(key)
        if connection is None:
            connection = TopicConnection(
                topic_id=topic_id,
                station_a=station_a,
                station_b=station_b,
                strength=strength,
                updated_at=now,
            )
            self.connections[key] = connection
        else:
            connection.strength = strength
            connection.active = True
            connection.updated_at = now
        return connection.model_copy()

    async def delete_inactive_connections(self, older_than: datetime) -> int:
        stale = [
            key for key, c in self.connections.items()
            if not c.active and c.updated_at < older_than
        ]
        for key in stale:
            del self.connections[key]
        return len(stale)
