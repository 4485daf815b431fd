"""Tests for the in-memory gateway and the transcription state machine."""

from datetime import datetime, timedelta, timezone

import pytest

from radiopulse.models.topic import canonical_pair
from radiopulse.models.transcription import (
    InvalidTransitionError,
    Transcription,
    TranscriptionStatus,
)


def pending(station_id="S1"):
    now = datetime.now(timezone.utc)
    return Transcription(station_id=station_id, audio_path="a.mp3", start_time=now, end_time=now)


class TestTranscriptionStatus:

    def test_happy_path(self):
        t = pending()
        t.transition(TranscriptionStatus.PROCESSING)
        t.transition(TranscriptionStatus.FAILED, error="boom")

        assert t.is_terminal
        assert t.error == "boom"

    @pytest.mark.parametrize("start,target", [
        (TranscriptionStatus.PENDING, TranscriptionStatus.COMPLETED),
        (TranscriptionStatus.COMPLETED, TranscriptionStatus.FAILED),
        (TranscriptionStatus.FAILED, TranscriptionStatus.PROCESSING),
    ])
    def test_disallowed(self, start, target):
        t = pending()
        t.status = start
        with pytest.raises(InvalidTransitionError):
            t.transition(target)


class TestMemoryStore:

    @pytest.mark.asyncio
    async def test_insert_notifies_exactly_once(self, store):
        seen = []
        subscription = store.subscribe_transcriptions(seen.append)

        saved = await store.insert_transcription(pending())
        subscription.unsubscribe()
        await store.insert_transcription(pending())

        assert seen == [saved.id]

    @pytest.mark.asyncio
    async def test_listener_errors_are_contained(self, store):
        def broken(_):
            raise RuntimeError("listener bug")

        store.subscribe_transcriptions(broken)
        saved = await store.insert_transcription(pending())

        assert saved.id in store.transcriptions

    @pytest.mark.asyncio
    async def test_update_status_follows_state_machine(self, store):
        saved = await store.insert_transcription(pending())

        await store.update_transcription_status(saved.id, TranscriptionStatus.PROCESSING)
        await store.update_transcription_status(saved.id, TranscriptionStatus.COMPLETED)
        with pytest.raises(InvalidTransitionError):
            await store.update_transcription_status(saved.id, TranscriptionStatus.FAILED)

        assert (await store.get_transcription(saved.id)).status is TranscriptionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_recent_transcriptions_newest_first(self, store):
        old = pending()
        old.created_at = datetime.now(timezone.utc) - timedelta(hours=1)
        await store.insert_transcription(old)
        first = await store.insert_transcription(pending())
        second = await store.insert_transcription(pending())
        second_row = store.transcriptions[second.id]
        second_row.created_at = first.created_at + timedelta(seconds=1)

        rows = await store.list_transcriptions_since(
            datetime.now(timezone.utc) - timedelta(minutes=5)
        )

        assert [r.id for r in rows] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_connection_pair_is_canonical(self, store):
        topic = await store.upsert_topic("Election", "election")

        await store.upsert_topic_connection(topic.id, "S2", "S1", 0.5)
        await store.upsert_topic_connection(topic.id, "S1", "S2", 0.7)

        [connection] = store.connections.values()
        assert (connection.station_a, connection.station_b) == ("S1", "S2")
        assert connection.strength == 0.7

    @pytest.mark.asyncio
    async def test_deactivate_keeps_updated_at(self, store):
        topic = await store.upsert_topic("Election", "election")
        connection = await store.upsert_topic_connection(topic.id, "S1", "S2", 0.5)

        await store.deactivate_connections()

        [row] = store.connections.values()
        assert not row.active
        assert row.updated_at == connection.updated_at

    @pytest.mark.asyncio
    async def test_catalog_names(self, store):
        assert await store.get_station_name("S1") == "Radio One"
        assert await store.get_station_name("nope") is None

    def test_canonical_pair_rejects_self_loop(self):
        assert canonical_pair("b", "a") == ("a", "b")
        with pytest.raises(ValueError):
            canonical_pair("a", "a")
