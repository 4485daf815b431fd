"""Realtime topic processing driven by new-transcription notifications."""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from radiopulse.models.config import RealtimeConfig
from radiopulse.pipeline.throttle import IntervalThrottle
from radiopulse.store.base import PersistenceGateway, Subscription
from radiopulse.topics.engine import TopicExtractionEngine
from radiopulse.utils.log import log_debug, log_error, log_step, log_success, log_warning


class RealtimeDispatcher:
    """Process each new transcription, then refresh trends and connections.

    Events are queued and handled one at a time. Trend and connection passes
    run at most once per ``segment_length * multiplier`` seconds each. When
    the fallback timer is on, a background task re-checks the throttles on
    the same cadence so quiet periods still get recomputed.

    The gateway must invoke the subscription callback on the event loop.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        engine: TopicExtractionEngine,
        config: RealtimeConfig | None = None,
        *,
        segment_length: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway = gateway
        self.engine = engine
        self.config = config or RealtimeConfig()
        self.trend_throttle = IntervalThrottle(
            segment_length * self.config.trend_interval_multiplier, clock
        )
        self.connection_throttle = IntervalThrottle(
            segment_length * self.config.connection_interval_multiplier, clock
        )
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._subscription: Subscription | None = None
        self._worker: asyncio.Task | None = None
        self._fallback: asyncio.Task | None = None
        self._stopping = asyncio.Event()
        self._lock = asyncio.Lock()

    @property
    def is_active(self) -> bool:
        return self._subscription is not None

    async def start(self) -> None:
        if self.is_active:
            log_warning("Realtime: already listening for transcriptions")
            return

        self._queue = asyncio.Queue()
        self._stopping = asyncio.Event()
        self._worker = asyncio.create_task(self._run(), name="realtime-worker")
        self._subscription = self.gateway.subscribe_transcriptions(self._enqueue)

        interval = self._fallback_interval()
        if self.config.fallback_timer and interval is not None:
            self._fallback = asyncio.create_task(
                self._fallback_loop(interval), name="realtime-fallback"
            )
        log_success("Real-time topic processing started")

    async def stop(self) -> None:
        """Unsubscribe, drop queued events and let in-flight work finish.

        Both the event being handled and a fallback pass already under way
        run to completion.
        """
        if not self.is_active:
            return
        self._subscription.unsubscribe()
        self._subscription = None

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            log_debug("Realtime", f"dropped {dropped} queued event(s)")

        if self._fallback is not None:
            self._stopping.set()
            await self._fallback
            self._fallback = None

        if self._worker is not None:
            self._queue.put_nowait(None)
            await self._worker
            self._worker = None
        log_success("Real-time topic processing stopped")

    async def wait_idle(self) -> None:
        await self._queue.join()

    def _enqueue(self, transcription_id: str) -> None:
        if not self.is_active:
            return
        if not transcription_id:
            log_warning("Realtime: received transcription without id")
            return
        self._queue.put_nowait(transcription_id)

    async def _run(self) -> None:
        while True:
            transcription_id = await self._queue.get()
            try:
                if transcription_id is None:
                    return
                await self.handle_transcription(transcription_id)
            except Exception as e:
                log_error(f"Realtime: failed to process transcription {transcription_id}: {e}")
            finally:
                self._queue.task_done()

    async def handle_transcription(self, transcription_id: str) -> int:
        log_step("Realtime", f"New transcription detected: {transcription_id}")
        count = await self.engine.process_transcription_by_id(transcription_id)
        await self.run_due_passes()
        return count

    async def run_due_passes(self) -> None:
        """Run the trend and connection passes whose interval has elapsed."""
        async with self._lock:
            if self.trend_throttle.try_acquire():
                try:
                    await self.engine.update_topic_trends()
                except Exception as e:
                    log_error(f"Realtime: error updating topic trends: {e}")
            if self.connection_throttle.try_acquire():
                try:
                    await self.engine.update_topic_connections()
                except Exception as e:
                    log_error(f"Realtime: error updating topic connections: {e}")

    def _fallback_interval(self) -> float | None:
        intervals = [
            t.interval for t in (self.trend_throttle, self.connection_throttle) if t.enabled
        ]
        return min(intervals) if intervals else None

    async def _fallback_loop(self, interval: float) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=interval)
            except asyncio.TimeoutError:
                await self.run_due_passes()
