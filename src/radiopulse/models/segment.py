"""In-memory segment record owned by a StreamManager."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path


@dataclass
class Segment:
    """A completed audio chunk written by the segmenter."""

    path: Path
    number: int
    duration: float
    completed_at: datetime
    error: str | None = None
    transcription_id: str | None = None

    @property
    def started_at(self) -> datetime:
        return self.completed_at - timedelta(seconds=self.duration)

    @property
    def name(self) -> str:
        return self.path.name


def segment_name_regex(prefix: str, extension: str) -> re.Pattern[str]:
    """Match ``<prefix>-<digits>.<extension>`` and capture the number."""
    return re.compile(rf"^{re.escape(prefix)}-(\d+)\.{re.escape(extension)}$")


def parse_segment_number(name: str, pattern: re.Pattern[str]) -> int | None:
    """Return the segment number encoded in a file name, or None."""
    match = pattern.match(name)
    return int(match.group(1)) if match else None
