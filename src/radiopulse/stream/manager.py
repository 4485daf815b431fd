"""Per-station capture: segmenter, segment tracking, transcription, retention.

All tracking state is owned by one mailbox task per station. Watcher events,
zero-size re-checks and processing completions arrive as messages, so the
segment map is never mutated from two places at once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Protocol

from radiopulse.models.config import StreamConfig
from radiopulse.models.segment import Segment, parse_segment_number, segment_name_regex
from radiopulse.models.transcription import Transcription, TranscriptionStatus
from radiopulse.providers.base import TranscriptionProvider
from radiopulse.store.base import PersistenceGateway
from radiopulse.stream.retention import RetentionManager
from radiopulse.stream.segmenter import Segmenter, SubprocessSegmenter
from radiopulse.stream.watcher import PathCallback, SegmentWatcher
from radiopulse.utils.io import file_to_base64
from radiopulse.utils.log import log_debug, log_error, log_step, log_warning


class Watcher(Protocol):
    def start(self) -> None: ...

    async def stop(self) -> None: ...


SegmenterFactory = Callable[[str, str, Path, StreamConfig], Segmenter]
WatcherFactory = Callable[[Path, str, PathCallback, PathCallback], Watcher]


def _default_watcher(
    directory: Path, prefix: str, on_created: PathCallback, on_removed: PathCallback
) -> Watcher:
    return SegmentWatcher(directory, prefix, on_created=on_created, on_removed=on_removed)


# Mailbox messages

@dataclass(frozen=True)
class FileCreated:
    path: Path


@dataclass(frozen=True)
class FileRemoved:
    path: Path


@dataclass(frozen=True)
class CheckSegment:
    path: Path


@dataclass(frozen=True)
class SegmentProcessed:
    number: int


@dataclass
class StreamHealth:
    station_id: str
    capturing: bool
    exit_code: int | None
    segment_count: int
    pending_count: int
    last_segment_at: datetime | None


class StreamManager:
    """Capture one station's stream into numbered segment files."""

    def __init__(
        self,
        station_id: str,
        stream_url: str,
        output_dir: Path,
        config: StreamConfig | None = None,
        *,
        gateway: PersistenceGateway | None = None,
        transcriber: TranscriptionProvider | None = None,
        segmenter_factory: SegmenterFactory = SubprocessSegmenter,
        watcher_factory: WatcherFactory = _default_watcher,
    ):
        self.station_id = station_id
        self.stream_url = stream_url
        self.output_dir = Path(output_dir)
        self.config = config or StreamConfig()
        self.gateway = gateway
        self.transcriber = transcriber
        self.retention = RetentionManager(self.config.keep_segments)
        self.segmenter = segmenter_factory(station_id, stream_url, self.output_dir, self.config)
        self._watcher_factory = watcher_factory
        self.watcher: Watcher | None = None

        self._pattern = segment_name_regex(
            self.config.segment_prefix, self.config.segment_extension
        )
        self._segments: dict[int, Segment] = {}
        self._pending: dict[Path, asyncio.TimerHandle | None] = {}
        self._processing: set[asyncio.Task] = set()
        self._mailbox: asyncio.Queue = asyncio.Queue()
        self._actor: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._started = False
        self._closed = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._closed

    # Lifecycle

    async def start(self) -> StreamManager:
        """Resume numbering after existing files and begin capturing."""
        if self._started:
            return self
        if self._closed:
            raise RuntimeError(f"StreamManager {self.station_id} was stopped")

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._load_existing()
        start_number = self.next_segment_number()

        self._loop = asyncio.get_running_loop()
        self._actor = asyncio.create_task(self._run(), name=f"stream-{self.station_id}")
        try:
            self.watcher = self._watcher_factory(
                self.output_dir,
                self.config.segment_prefix,
                self.handle_file_created,
                self.handle_file_removed,
            )
            self.watcher.start()
            await self.segmenter.start(start_number)
        except BaseException:
            await self.stop()
            raise

        self._started = True
        log_step(
            "Stream",
            f"{self.station_id}: capturing {self.stream_url} "
            f"({self.config.segment_length}s segments, keep {self.config.keep_segments})",
        )
        return self

    async def stop(self) -> None:
        """Stop capturing; safe to call more than once.

        Segments still being transcribed get ``stop_timeout_seconds`` to
        finish. Whatever is left after that is cancelled and not saved.
        """
        if self._closed:
            return
        self._closed = True

        if self._actor is not None:
            self._actor.cancel()
            await asyncio.gather(self._actor, return_exceptions=True)
            self._actor = None

        for handle in self._pending.values():
            if handle is not None:
                handle.cancel()
        self._pending.clear()

        await self._drain_processing()

        try:
            await self.segmenter.stop()
        finally:
            if self.watcher is not None:
                await self.watcher.stop()
        log_step("Stream", f"{self.station_id}: stopped")

    async def _drain_processing(self) -> None:
        if not self._processing:
            return
        _, unfinished = await asyncio.wait(
            set(self._processing), timeout=self.config.stop_timeout_seconds
        )
        for task in unfinished:
            task.cancel()
        await asyncio.gather(*unfinished, return_exceptions=True)
        if unfinished:
            log_warning(
                f"Stream {self.station_id}: cancelled {len(unfinished)} unfinished transcription(s)"
            )

    async def wait_idle(self) -> None:
        """Wait until queued events and in-flight processing have drained.

        Pending zero-size re-checks are not waited for.
        """
        while True:
            if self._processing:
                await asyncio.gather(*list(self._processing), return_exceptions=True)
                continue
            if self._closed or self._actor is None:
                return
            await self._mailbox.join()
            if not self._processing and self._mailbox.empty():
                return

    # Queries

    def next_segment_number(self) -> int:
        return max(self._segments) + 1 if self._segments else 0

    def get_segments(self) -> list[Segment]:
        return [self._segments[n] for n in sorted(self._segments)]

    def health(self) -> StreamHealth:
        last = max(self._segments.values(), key=lambda s: s.number, default=None)
        return StreamHealth(
            station_id=self.station_id,
            capturing=self.segmenter.is_running,
            exit_code=self.segmenter.returncode,
            segment_count=len(self._segments),
            pending_count=len(self._pending),
            last_segment_at=last.completed_at if last else None,
        )

    # Event entry points (loop thread)

    def handle_file_created(self, path: Path) -> None:
        self._post(FileCreated(Path(path)))

    def handle_file_removed(self, path: Path) -> None:
        self._post(FileRemoved(Path(path)))

    def _post(self, message: object) -> None:
        if self._closed:
            return
        self._mailbox.put_nowait(message)

    # Mailbox

    async def _run(self) -> None:
        while True:
            message = await self._mailbox.get()
            try:
                self._dispatch(message)
            except Exception as e:
                log_error(f"Stream {self.station_id}: failed to handle {message}: {e}")
            finally:
                self._mailbox.task_done()

    def _dispatch(self, message: object) -> None:
        if isinstance(message, FileCreated):
            self._on_created(message.path)
        elif isinstance(message, CheckSegment):
            self._check(message.path)
        elif isinstance(message, FileRemoved):
            self._on_removed(message.path)
        elif isinstance(message, SegmentProcessed):
            log_debug("Processing", f"{self.station_id}: segment #{message.number} done")
            self.retention.enforce(self._segments)

    def _load_existing(self) -> None:
        for path in sorted(self.output_dir.iterdir()):
            number = parse_segment_number(path.name, self._pattern)
            if number is None or not path.is_file():
                continue
            completed_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
            self._segments[number] = Segment(
                path=path,
                number=number,
                duration=float(self.config.segment_length),
                completed_at=completed_at,
            )
        if self._segments:
            log_step(
                "Stream",
                f"{self.station_id}: found {len(self._segments)} existing segment(s), "
                f"highest #{max(self._segments)}",
            )

    def _on_created(self, path: Path) -> None:
        number = parse_segment_number(path.name, self._pattern)
        if number is None:
            log_debug("Watcher", f"{self.station_id}: ignoring {path.name}")
            return
        if number in self._segments or path in self._pending:
            return
        log_debug("Watcher", f"{self.station_id}: new file {path.name}")
        self._pending[path] = None
        self._check(path)

    def _check(self, path: Path) -> None:
        if path not in self._pending:
            return
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            log_debug("Watcher", f"{self.station_id}: {path.name} vanished before completion")
            del self._pending[path]
            return

        if size == 0:
            # FFmpeg has opened the file but not written it yet
            delay = self.config.segment_length / 2
            self._pending[path] = self._loop.call_later(delay, self._post, CheckSegment(path))
            return

        del self._pending[path]
        number = parse_segment_number(path.name, self._pattern)
        segment = Segment(
            path=path,
            number=number,
            duration=float(self.config.segment_length),
            completed_at=datetime.now(timezone.utc),
        )
        self._segments[number] = segment
        log_step("Segment", f"{self.station_id}: {segment.name} ({size} bytes)")

        task = asyncio.create_task(
            self._process_and_report(segment),
            name=f"process-{self.station_id}-{number}",
        )
        self._processing.add(task)
        task.add_done_callback(self._processing.discard)

    def _on_removed(self, path: Path) -> None:
        if path in self._pending:
            handle = self._pending.pop(path)
            if handle is not None:
                handle.cancel()
            return

        number = parse_segment_number(path.name, self._pattern)
        segment = self._segments.get(number) if number is not None else None
        if segment is None or segment.path != path or path.exists():
            return
        del self._segments[number]
        log_step("Watcher", f"{self.station_id}: detected deletion of {path.name}")

    # Processing

    async def _process_and_report(self, segment: Segment) -> None:
        try:
            await self.process_segment(segment)
        finally:
            self._post(SegmentProcessed(segment.number))

    async def process_segment(self, segment: Segment) -> Transcription | None:
        """Transcribe one segment and persist the result.

        Failures land on ``segment.error``; nothing here raises.
        """
        if self.transcriber is None:
            log_debug("Processing", f"{self.station_id}: no transcriber, skipping {segment.name}")
            return None

        record = Transcription(
            station_id=self.station_id,
            audio_path=str(segment.path),
            start_time=segment.started_at,
            end_time=segment.completed_at,
        )
        record.transition(TranscriptionStatus.PROCESSING)

        try:
            record.captions = await self.transcriber.transcribe(segment.path)
        except Exception as e:
            segment.error = str(e)
            record.transition(TranscriptionStatus.FAILED, error=str(e))
            log_error(f"Processing {self.station_id}: {segment.name} failed: {e}")
        else:
            record.transition(TranscriptionStatus.COMPLETED)
            log_step(
                "Processing",
                f"{self.station_id}: {segment.name} -> {len(record.captions)} caption(s)",
            )

        if self.gateway is None:
            return record
        if record.status is TranscriptionStatus.COMPLETED and not record.captions:
            log_debug("Processing", f"{self.station_id}: {segment.name} has no captions to save")
            return record

        if self.config.embed_audio:
            try:
                record.audio_data = file_to_base64(segment.path)
            except OSError as e:
                log_warning(f"Processing {self.station_id}: cannot embed {segment.name}: {e}")

        try:
            saved = await self.gateway.insert_transcription(record)
        except Exception as e:
            segment.error = segment.error or f"failed to save transcription: {e}"
            log_error(f"Processing {self.station_id}: error saving transcription: {e}")
            return record

        record.id = saved.id
        segment.transcription_id = saved.id
        return record
