"""Topic extraction and the derived topic graph.

Turns completed transcriptions into Topic / StationTopic / TopicMention rows
and recomputes trend scores and cross-station connections over them.
"""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError

from radiopulse.models.config import TopicScoringConfig
from radiopulse.models.topic import ExtractedTopic, StationTopic
from radiopulse.models.transcription import Transcription, TranscriptionStatus
from radiopulse.providers.base import ProviderError, TopicExtractionProvider
from radiopulse.store.base import PersistenceGateway
from radiopulse.topics.mentions import find_topic_mentions
from radiopulse.topics.prompts import build_extraction_prompt
from radiopulse.topics.scoring import connection_strength, trend_score
from radiopulse.utils.llm_json import find_json_array
from radiopulse.utils.log import log_debug, log_error, log_step, log_warning

_WHITESPACE = re.compile(r"\s+")


def topic_key(normalized_name: str) -> str:
    """Canonical topic identity: lowercased with collapsed whitespace."""
    return _WHITESPACE.sub(" ", normalized_name.strip().lower())


def parse_topics(text: str | None) -> list[ExtractedTopic]:
    """Validate each item of the JSON array in ``text``; bad items are dropped."""
    items = find_json_array(text)
    if items is None:
        if text:
            log_warning("Topics: no JSON array in extraction response")
        return []

    topics = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            topics.append(ExtractedTopic.model_validate(item))
        except ValidationError as e:
            log_debug("Topics", f"dropping invalid topic {item!r}: {e.error_count()} error(s)")
    return topics


class TopicExtractionEngine:
    """Extract topics with an LLM and maintain the topic graph in the gateway."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        provider: TopicExtractionProvider,
        config: TopicScoringConfig | None = None,
    ):
        self.gateway = gateway
        self.provider = provider
        self.config = config or TopicScoringConfig()

    # Extraction

    async def extract_topics_from_text(
        self, text: str, station_name: str | None = None
    ) -> list[ExtractedTopic]:
        """Extract topics; short text, provider failures and bad output give []."""
        if not text or len(text.strip()) < self.config.min_text_length:
            return []

        prompt = build_extraction_prompt(self.provider.name, text, station_name)
        try:
            response = await self.provider.complete(prompt)
        except ProviderError as e:
            log_error(f"Topics: extraction failed: {e}")
            return []
        return parse_topics(response)

    async def extract_topics_from_transcription(
        self, transcription: Transcription
    ) -> list[ExtractedTopic]:
        if not transcription.captions:
            return []

        try:
            station_name = await self.gateway.get_station_name(transcription.station_id)
        except Exception as e:
            log_debug("Topics", f"no station name for {transcription.station_id}: {e}")
            station_name = None

        return await self.extract_topics_from_text(transcription.spoken_text(), station_name)

    # Persistence

    async def save_topics(
        self,
        station_id: str,
        topics: list[ExtractedTopic],
        transcription_id: str | None = None,
        *,
        transcription: Transcription | None = None,
    ) -> int:
        """Upsert topics and station edges, index mentions; returns topics saved."""
        now = datetime.now(timezone.utc)

        source = transcription
        if transcription_id and source is None:
            try:
                source = await self.gateway.get_transcription(transcription_id)
            except Exception as e:
                log_error(f"Topics: cannot load transcription {transcription_id}: {e}")

        saved = 0
        for topic in topics:
            key = topic_key(topic.normalized_name)
            try:
                row = await self.gateway.upsert_topic(topic.name, key)
                await self.gateway.upsert_station_topic(
                    station_id, row.id, topic.relevance_score, now
                )
                if transcription_id and source is not None:
                    mentions = find_topic_mentions(
                        source, row.id, key, context_words=self.config.context_words
                    )
                    if mentions:
                        await self.gateway.insert_topic_mentions(mentions)
            except Exception as e:
                log_error(f"Topics: error processing topic {topic.name!r}: {e}")
                continue
            saved += 1
        return saved

    # Processing

    async def process_transcription(self, transcription: Transcription) -> int:
        """Extract and save topics for one transcription; returns the topic count."""
        if not transcription.id or not transcription.station_id:
            log_error("Topics: transcription without id or station, skipping")
            return 0

        try:
            topics = await self.extract_topics_from_transcription(transcription)
            if not topics:
                return 0
            await self.save_topics(
                transcription.station_id,
                topics,
                transcription.id,
                transcription=transcription,
            )
        except Exception as e:
            log_error(f"Topics: error processing transcription {transcription.id}: {e}")
            return 0

        log_step(
            "Topics",
            f"{transcription.station_id}: {len(topics)} topic(s) "
            f"({', '.join(t.name for t in topics)})",
        )
        return len(topics)

    async def process_transcription_by_id(self, transcription_id: str) -> int:
        transcription = await self.gateway.get_transcription(transcription_id)
        if transcription is None:
            log_warning(f"Topics: transcription {transcription_id} not found")
            return 0
        if transcription.status is not TranscriptionStatus.COMPLETED:
            log_debug("Topics", f"skipping {transcription_id} ({transcription.status.value})")
            return 0
        return await self.process_transcription(transcription)

    async def process_transcription_batch(
        self,
        transcriptions: list[Transcription],
        *,
        update_trends: bool = True,
        update_connections: bool = True,
    ) -> int:
        total = 0
        for transcription in transcriptions:
            if transcription.status is not TranscriptionStatus.COMPLETED:
                continue
            total += await self.process_transcription(transcription)

        if total > 0:
            if update_trends:
                try:
                    await self.update_topic_trends()
                except Exception as e:
                    log_error(f"Topics: error updating topic trends: {e}")
            if update_connections:
                try:
                    await self.update_topic_connections()
                except Exception as e:
                    log_error(f"Topics: error updating topic connections: {e}")
        return total

    async def process_recent_transcriptions(
        self, minutes_back: int = 15, limit: int = 100
    ) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes_back)
        transcriptions = await self.gateway.list_transcriptions_since(cutoff, limit=limit)
        log_step("Topics", f"Processing {len(transcriptions)} recent transcription(s)")
        return await self.process_transcription_batch(transcriptions)

    # Derived graph

    async def _edges_by_topic(self) -> dict[str, list[StationTopic]]:
        by_topic: dict[str, list[StationTopic]] = defaultdict(list)
        for edge in await self.gateway.list_station_topics():
            by_topic[edge.topic_id].append(edge)
        return by_topic

    async def _recent_edges(self, cutoff: datetime) -> dict[str, list[StationTopic]]:
        by_topic = await self._edges_by_topic()
        recent = {
            topic_id: [e for e in edges if e.last_mentioned_at > cutoff]
            for topic_id, edges in by_topic.items()
        }
        return {topic_id: edges for topic_id, edges in recent.items() if edges}

    async def update_topic_trends(self, now: datetime | None = None) -> int:
        """Recompute trend scores; returns the number of trending topics.

        Only topics mentioned somewhere inside the trend window are rescored,
        but the score covers every station edge of such a topic.
        """
        now = now or datetime.now(timezone.utc)
        await self.gateway.reset_trending()

        cutoff = now - timedelta(hours=self.config.trend_window_hours)
        recent = {
            topic_id: edges
            for topic_id, edges in (await self._edges_by_topic()).items()
            if any(e.last_mentioned_at > cutoff for e in edges)
        }
        trending = 0
        for topic_id, edges in recent.items():
            score = trend_score(edges, now)
            is_trending = score > self.config.trend_threshold
            await self.gateway.update_topic_trend(topic_id, score, is_trending)
            trending += is_trending

        log_step("Topics", f"Trends updated: {len(recent)} scored, {trending} trending")
        return trending

    async def update_topic_connections(self, now: datetime | None = None) -> int:
        """Rebuild active station connections; returns how many are active."""
        now = now or datetime.now(timezone.utc)
        await self.gateway.deactivate_connections()

        recent = await self._recent_edges(now - timedelta(days=self.config.connection_window_days))
        active = 0
        for topic_id, edges in recent.items():
            eligible = sorted(
                (e for e in edges if e.relevance_score >= self.config.min_connection_relevance),
                key=lambda e: e.station_id,
            )
            for i, first in enumerate(eligible):
                for second in eligible[i + 1:]:
                    if first.station_id == second.station_id:
                        continue
                    await self.gateway.upsert_topic_connection(
                        topic_id,
                        first.station_id,
                        second.station_id,
                        connection_strength(first, second, now),
                    )
                    active += 1

        pruned = await self.gateway.delete_inactive_connections(
            now - timedelta(days=self.config.prune_after_days)
        )
        log_step("Topics", f"Connections updated: {active} active, {pruned} pruned")
        return active
