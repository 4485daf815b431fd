"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from radiopulse.models.config import StreamConfig
from radiopulse.models.station import StationRef
from radiopulse.store.memory import MemoryStore

from fakes import fake_manager_factory


@pytest.fixture
def store():
    return MemoryStore([
        StationRef(id="S1", stream_url="http://radio.test/s1", name="Radio One"),
        StationRef(id="S2", stream_url="http://radio.test/s2", name="Radio Two"),
    ])


@pytest.fixture
def stream_config():
    return StreamConfig(segment_length=30, keep_segments=10)


@pytest.fixture
def make_manager(tmp_path, stream_config):
    def _make(station_id="S1", *, config=None, **kwargs):
        return fake_manager_factory(
            station_id,
            f"http://radio.test/{station_id}",
            tmp_path / station_id,
            config or stream_config,
            **kwargs,
        )
    return _make
