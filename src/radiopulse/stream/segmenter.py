"""Supervised FFmpeg segment-muxer subprocess, one per station."""

from __future__ import annotations

import asyncio
from collections import deque
from pathlib import Path
from typing import Protocol

from radiopulse.models.config import StreamConfig
from radiopulse.utils.ffmpeg import (
    FFmpegError,
    build_segment_command,
    segment_pattern,
    verify_ffmpeg,
)
from radiopulse.utils.log import log_error, log_step

STDERR_TAIL_LINES = 40


class SegmenterError(Exception):
    """Raised when the segmenter cannot be launched."""


class Segmenter(Protocol):
    """What a StreamManager needs from its capture process."""

    @property
    def is_running(self) -> bool: ...

    @property
    def returncode(self) -> int | None: ...

    async def start(self, start_number: int) -> None: ...

    async def stop(self) -> None: ...


class SubprocessSegmenter:
    """Spawns FFmpeg for one stream and keeps the exact process handle.

    A non-zero exit is logged with the captured stderr tail and the handle
    is cleared; the process is never restarted here.
    """

    def __init__(
        self,
        station_id: str,
        stream_url: str,
        output_dir: Path,
        config: StreamConfig,
        *,
        binary: str = "ffmpeg",
    ):
        self.station_id = station_id
        self.stream_url = stream_url
        self.output_dir = Path(output_dir)
        self.config = config
        self.binary = binary
        self._process: asyncio.subprocess.Process | None = None
        self._supervisor: asyncio.Task | None = None
        self._returncode: int | None = None
        self._stopping = False
        self.stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    @property
    def returncode(self) -> int | None:
        return self._returncode

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process else None

    def command(self, start_number: int) -> list[str]:
        pattern = self.output_dir / segment_pattern(
            self.config.segment_prefix,
            self.config.number_width,
            self.config.segment_extension,
        )
        return build_segment_command(
            self.stream_url,
            pattern,
            segment_seconds=self.config.segment_length,
            start_number=start_number,
            binary=self.binary,
        )

    async def start(self, start_number: int) -> None:
        if self.is_running:
            raise SegmenterError(f"{self.station_id}: segmenter already running")

        try:
            verify_ffmpeg(self.binary)
            cmd = self.command(start_number)
        except FFmpegError as e:
            raise SegmenterError(str(e)) from e

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SegmenterError(f"{self.station_id}: failed to launch ffmpeg: {e}") from e

        self._process = process
        self._returncode = None
        self._stopping = False
        self.stderr_tail.clear()
        self._supervisor = asyncio.create_task(
            self._supervise(process), name=f"segmenter-{self.station_id}"
        )
        log_step("Segmenter", f"{self.station_id}: ffmpeg pid {process.pid} from segment #{start_number}")

    async def _supervise(self, process: asyncio.subprocess.Process) -> None:
        # Drain stderr continuously so FFmpeg never blocks on a full pipe
        if process.stderr is not None:
            async for raw in process.stderr:
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    self.stderr_tail.append(line)

        code = await process.wait()
        self._returncode = code
        if self._process is process:
            self._process = None

        if self._stopping:
            return
        if code != 0:
            details = "\n".join(self.stderr_tail) or "(no output)"
            log_error(
                f"Segmenter {self.station_id}: ffmpeg exited with code {code}\n{details}"
            )
        else:
            log_step("Segmenter", f"{self.station_id}: stream ended")

    async def stop(self) -> None:
        """Terminate the process captured at spawn time; idempotent."""
        self._stopping = True
        process = self._process
        if process is not None and process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            else:
                try:
                    await asyncio.wait_for(process.wait(), self.config.stop_timeout_seconds)
                except asyncio.TimeoutError:
                    process.kill()
                    await process.wait()

        if self._supervisor is not None:
            await self._supervisor
            self._supervisor = None
        self._process = None
