"""Tests for topic extraction, saving and the derived topic graph."""

from datetime import datetime, timedelta, timezone

import pytest

from radiopulse.models.config import TopicScoringConfig
from radiopulse.models.topic import ExtractedTopic
from radiopulse.models.transcription import CaptionSegment, Transcription, TranscriptionStatus
from radiopulse.topics.engine import TopicExtractionEngine, parse_topics, topic_key

from fakes import FakeExtractor, provider_error, topics_json

LONG_TEXT = "The election results are coming in from across the country tonight."


def topic(name, normalized, score):
    return ExtractedTopic(name=name, normalized_name=normalized, relevance_score=score)


def completed(station_id, captions, transcription_id=None):
    now = datetime.now(timezone.utc)
    return Transcription(
        id=transcription_id,
        station_id=station_id,
        audio_path=f"/tmp/{station_id}/segment-000.mp3",
        start_time=now - timedelta(seconds=30),
        end_time=now,
        captions=captions,
        status=TranscriptionStatus.COMPLETED,
    )


@pytest.fixture
def extractor():
    return FakeExtractor(topics_json(("Election", "election", 0.9)))


@pytest.fixture
def engine(store, extractor):
    return TopicExtractionEngine(store, extractor, TopicScoringConfig())


class TestParseTopics:

    def test_bare_array(self):
        topics = parse_topics(topics_json(("Election", "election", 0.9)))
        assert [t.normalized_name for t in topics] == ["election"]

    def test_array_inside_prose_and_fences(self):
        text = "Sure! Here you go:\n```json\n" + topics_json(("Budget", "budget", 0.5)) + "\n```"
        assert [t.name for t in parse_topics(text)] == ["Budget"]

    def test_array_wrapped_in_object(self):
        text = '{"topics": [{"name": "Rain", "normalizedName": "rain", "relevanceScore": 0.4}]}'
        assert [t.name for t in parse_topics(text)] == ["Rain"]

    def test_malformed_response_yields_nothing(self):
        assert parse_topics("I could not find any topics.") == []
        assert parse_topics("[not json") == []
        assert parse_topics("") == []

    def test_invalid_items_are_dropped(self):
        text = (
            '[{"name": "Ok", "normalizedName": "ok", "relevanceScore": 0.5},'
            ' {"name": "", "normalizedName": "blank", "relevanceScore": 0.5},'
            ' {"name": "High", "normalizedName": "high", "relevanceScore": 1.5},'
            ' {"name": "Text", "normalizedName": "text", "relevanceScore": "0.8"},'
            ' {"name": "Missing", "relevanceScore": 0.5},'
            ' "just a string"]'
        )
        assert [t.name for t in parse_topics(text)] == ["Ok"]

    def test_topic_key(self):
        assert topic_key("  New   York ") == "new york"
        assert topic_key("ELECTION") == "election"


class TestExtraction:

    @pytest.mark.asyncio
    async def test_short_text_skips_provider(self, engine, extractor):
        assert await engine.extract_topics_from_text("   too short    ") == []
        assert extractor.prompts == []

    @pytest.mark.asyncio
    async def test_prompt_carries_station_and_text(self, engine, extractor):
        topics = await engine.extract_topics_from_text(LONG_TEXT, "Radio One")

        assert [t.name for t in topics] == ["Election"]
        [prompt] = extractor.prompts
        assert "radio station Radio One" in prompt
        assert f'"""\n{LONG_TEXT}\n"""' in prompt
        assert "normalizedName" in prompt

    @pytest.mark.asyncio
    async def test_provider_error_yields_nothing(self, store):
        engine = TopicExtractionEngine(store, FakeExtractor(error=provider_error()))
        assert await engine.extract_topics_from_text(LONG_TEXT) == []

    @pytest.mark.asyncio
    async def test_malformed_output_yields_nothing(self, store):
        engine = TopicExtractionEngine(store, FakeExtractor("no topics, sorry"))
        assert await engine.extract_topics_from_text(LONG_TEXT) == []

    @pytest.mark.asyncio
    async def test_transcription_skips_commercials_and_music(self, engine, extractor):
        transcription = completed("S1", [
            CaptionSegment(text="Buy one get one free at Mega Mart!", is_commercial=True),
            CaptionSegment(text="la la la", is_music=True),
            CaptionSegment(text=LONG_TEXT),
        ])

        await engine.extract_topics_from_transcription(transcription)

        [prompt] = extractor.prompts
        assert "Mega Mart" not in prompt
        assert "la la la" not in prompt
        assert "Radio One" in prompt


class TestSaveTopics:

    @pytest.mark.asyncio
    async def test_casing_variants_collapse(self, engine, store):
        await engine.save_topics("S1", [topic("Election", "Election", 0.9)])
        await engine.save_topics("S1", [topic("ELECTION", " election ", 0.4)])

        assert len(store.topics) == 1
        [row] = store.topics.values()
        assert row.normalized_name == "election"
        assert row.name == "Election"
        [edge] = store.station_topics.values()
        assert edge.mention_count == 2
        assert edge.relevance_score == 0.4

    @pytest.mark.asyncio
    async def test_first_mention_sets_both_timestamps(self, engine, store):
        await engine.save_topics("S1", [topic("Budget", "budget", 0.6)])

        [edge] = store.station_topics.values()
        assert edge.mention_count == 1
        assert edge.first_mentioned_at == edge.last_mentioned_at

    @pytest.mark.asyncio
    async def test_indexes_mentions_for_transcription(self, engine, store):
        saved = await store.insert_transcription(completed("S1", [
            CaptionSegment(text="Election day is here. The election matters."),
            CaptionSegment(text="Election sale now on!", is_commercial=True),
        ]))

        count = await engine.save_topics("S1", [topic("Election", "election", 0.9)], saved.id)

        assert count == 1
        assert [(m.segment_index, m.position) for m in store.mentions] == [(0, 0), (0, 26)]
        assert {m.transcription_id for m in store.mentions} == {saved.id}

    @pytest.mark.asyncio
    async def test_failing_topic_is_skipped(self, engine, store, monkeypatch):
        original = store.upsert_topic

        async def flaky(name, normalized_name):
            if normalized_name == "bad":
                raise RuntimeError("constraint violation")
            return await original(name, normalized_name)

        monkeypatch.setattr(store, "upsert_topic", flaky)

        count = await engine.save_topics("S1", [topic("Bad", "bad", 0.5), topic("Good", "good", 0.5)])

        assert count == 1
        assert [t.normalized_name for t in store.topics.values()] == ["good"]


class TestProcessing:

    @pytest.mark.asyncio
    async def test_process_transcription(self, engine, store):
        saved = await store.insert_transcription(completed("S1", [CaptionSegment(text=LONG_TEXT)]))

        assert await engine.process_transcription(saved) == 1
        assert len(store.mentions) == 1

    @pytest.mark.asyncio
    async def test_process_by_id_skips_failed(self, engine, store, extractor):
        failed = completed("S1", [CaptionSegment(text=LONG_TEXT)])
        failed.status = TranscriptionStatus.FAILED
        saved = await store.insert_transcription(failed)

        assert await engine.process_transcription_by_id(saved.id) == 0
        assert await engine.process_transcription_by_id("missing") == 0
        assert extractor.prompts == []

    @pytest.mark.asyncio
    async def test_transcription_without_id_is_rejected(self, engine):
        assert await engine.process_transcription(completed("S1", [CaptionSegment(text=LONG_TEXT)])) == 0

    @pytest.mark.asyncio
    async def test_recent_batch_updates_graph(self, engine, store):
        await store.insert_transcription(completed("S1", [CaptionSegment(text=LONG_TEXT)]))
        await store.insert_transcription(completed("S2", [CaptionSegment(text=LONG_TEXT)]))

        total = await engine.process_recent_transcriptions(minutes_back=5)

        assert total == 2
        [row] = store.topics.values()
        assert row.trend_score > 0
        assert len(store.connections) == 1


async def seed_edge(store, station_id, name, relevance, mentioned_at, times=1):
    row = await store.upsert_topic(name.title(), name)
    for _ in range(times):
        await store.upsert_station_topic(station_id, row.id, relevance, mentioned_at)
    return row


class TestTrends:

    @pytest.mark.asyncio
    async def test_scores_and_flags(self, engine, store):
        now = datetime.now(timezone.utc)
        hot = await seed_edge(store, "S1", "election", 0.9, now)
        await seed_edge(store, "S2", "election", 0.8, now)
        warm = await seed_edge(store, "S1", "weather", 0.5, now - timedelta(hours=2))
        stale = await seed_edge(store, "S1", "festival", 0.7, now - timedelta(days=2))
        store.topics[stale.id].is_trending = True

        trending = await engine.update_topic_trends(now)

        assert trending == 1
        # 3*2 stations + 2 mentions + 2*(10+10)
        assert store.topics[hot.id].trend_score == 48
        assert store.topics[hot.id].is_trending
        # 3 + 1 + 2*5
        assert store.topics[warm.id].trend_score == 14
        assert not store.topics[warm.id].is_trending
        assert not store.topics[stale.id].is_trending

    @pytest.mark.asyncio
    async def test_recent_topic_scores_all_its_stations(self, engine, store):
        now = datetime.now(timezone.utc)
        row = await seed_edge(store, "S1", "election", 0.9, now - timedelta(hours=5))
        await seed_edge(store, "S2", "election", 0.8, now - timedelta(days=2), times=10)
        await seed_edge(store, "S3", "election", 0.7, now - timedelta(days=2), times=10)

        assert await engine.update_topic_trends(now) == 1

        # 3*3 stations + 21 mentions + 2*(2+0+0)
        assert store.topics[row.id].trend_score == 34
        assert store.topics[row.id].is_trending

    @pytest.mark.asyncio
    async def test_threshold_is_strict(self, store, extractor):
        now = datetime.now(timezone.utc)
        # 3 + 1 + 2*10 = 24
        row = await seed_edge(store, "S1", "storm", 0.9, now)
        engine = TopicExtractionEngine(store, extractor, TopicScoringConfig(trend_threshold=24))

        await engine.update_topic_trends(now)

        assert store.topics[row.id].trend_score == 24
        assert not store.topics[row.id].is_trending


class TestConnections:

    @pytest.mark.asyncio
    async def test_election_connects_two_stations(self, engine, store):
        now = datetime.now(timezone.utc)
        row = await seed_edge(store, "S2", "election", 0.8, now)
        await seed_edge(store, "S1", "election", 0.9, now)

        assert await engine.update_topic_connections(now) == 1

        [connection] = store.connections.values()
        assert (connection.station_a, connection.station_b) == ("S1", "S2")
        assert connection.topic_id == row.id
        assert connection.strength == pytest.approx(0.72)
        assert connection.active

    @pytest.mark.asyncio
    async def test_rerun_does_not_duplicate(self, engine, store):
        now = datetime.now(timezone.utc)
        await seed_edge(store, "S1", "election", 0.9, now)
        await seed_edge(store, "S2", "election", 0.8, now)

        await engine.update_topic_connections(now)
        await engine.update_topic_connections(now)

        assert len(store.connections) == 1

    @pytest.mark.asyncio
    async def test_low_relevance_and_single_station_excluded(self, engine, store):
        now = datetime.now(timezone.utc)
        await seed_edge(store, "S1", "traffic", 0.9, now)
        await seed_edge(store, "S2", "traffic", 0.2, now)
        await seed_edge(store, "S1", "budget", 0.9, now)

        assert await engine.update_topic_connections(now) == 0
        assert store.connections == {}

    @pytest.mark.asyncio
    async def test_recency_factor_scales_strength(self, engine, store):
        now = datetime.now(timezone.utc)
        await seed_edge(store, "S1", "election", 1.0, now - timedelta(hours=30))
        await seed_edge(store, "S2", "election", 1.0, now - timedelta(hours=40))

        await engine.update_topic_connections(now)

        [connection] = store.connections.values()
        assert connection.strength == pytest.approx(0.25)

    @pytest.mark.asyncio
    async def test_stale_connection_deactivated_then_pruned(self, engine, store):
        now = datetime.now(timezone.utc)
        row = await seed_edge(store, "S1", "election", 0.9, now)
        await seed_edge(store, "S2", "election", 0.8, now)
        await engine.update_topic_connections(now)

        store.station_topics[("S2", row.id)].last_mentioned_at = now - timedelta(days=10)
        await engine.update_topic_connections(now)

        [connection] = store.connections.values()
        assert not connection.active

        connection.updated_at = now - timedelta(days=31)
        await engine.update_topic_connections(now)

        assert store.connections == {}
