"""Tests for the watchdog-backed segment watcher."""

import asyncio

import pytest

from radiopulse.stream.watcher import SegmentWatcher


def recording_watcher(directory):
    created, removed = [], []
    watcher = SegmentWatcher(
        directory, "segment", on_created=created.append, on_removed=removed.append
    )
    return watcher, created, removed


async def wait_for(predicate, timeout=5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(0.05)
    return True


class TestSegmentWatcher:

    @pytest.mark.asyncio
    async def test_dispatch_filters_prefix_and_hops_to_loop(self, tmp_path):
        watcher, created, _ = recording_watcher(tmp_path)
        watcher._loop = asyncio.get_running_loop()

        watcher.dispatch(watcher.on_created, str(tmp_path / "segment-001.mp3"))
        watcher.dispatch(watcher.on_created, str(tmp_path / "other-001.mp3"))
        assert created == []

        await asyncio.sleep(0)
        assert created == [tmp_path / "segment-001.mp3"]

    @pytest.mark.asyncio
    async def test_dispatch_after_stop_is_dropped(self, tmp_path):
        watcher, created, _ = recording_watcher(tmp_path)
        watcher._loop = asyncio.get_running_loop()
        await watcher.stop()

        watcher.dispatch(watcher.on_created, str(tmp_path / "segment-001.mp3"))
        await asyncio.sleep(0)

        assert created == []

    @pytest.mark.asyncio
    async def test_observes_real_files(self, tmp_path):
        watcher, created, removed = recording_watcher(tmp_path)
        watcher.start()
        try:
            path = tmp_path / "segment-000.mp3"
            path.write_bytes(b"audio")
            assert await wait_for(lambda: path in created)

            path.unlink()
            assert await wait_for(lambda: path in removed)
        finally:
            await watcher.stop()
