"""Transcription data models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TranscriptionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    TranscriptionStatus.PENDING: {TranscriptionStatus.PROCESSING},
    TranscriptionStatus.PROCESSING: {
        TranscriptionStatus.COMPLETED,
        TranscriptionStatus.FAILED,
    },
    TranscriptionStatus.COMPLETED: set(),
    TranscriptionStatus.FAILED: set(),
}


class InvalidTransitionError(Exception):
    """Raised when a transcription status change is not allowed."""


class CaptionSegment(BaseModel):
    """One captioned span returned by a transcription provider."""

    model_config = ConfigDict(populate_by_name=True)

    timecode: str = ""
    text: str = Field(alias="caption")
    is_commercial: bool = Field(default=False, alias="isCommercial")
    is_music: bool = Field(default=False, alias="isMusic")

    @property
    def is_filtered(self) -> bool:
        """Commercial and music spans are excluded from topic mining."""
        return self.is_commercial or self.is_music


class Transcription(BaseModel):
    """Speech-to-text output for one segment."""

    id: str | None = None
    station_id: str
    audio_path: str
    audio_data: str | None = None  # base64, only when embed_audio is set
    start_time: datetime
    end_time: datetime
    captions: list[CaptionSegment] = Field(default_factory=list)
    status: TranscriptionStatus = TranscriptionStatus.PENDING
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.status]

    def transition(self, status: TranscriptionStatus, *, error: str | None = None) -> None:
        """Move to ``status``; terminal states are never left."""
        if status not in _TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Transcription {self.id or '<new>'}: "
                f"{self.status.value} -> {status.value} not allowed"
            )
        self.status = status
        if error is not None:
            self.error = error

    def spoken_text(self) -> str:
        """Concatenate the captions that are neither commercial nor music."""
        return " ".join(c.text for c in self.captions if not c.is_filtered and c.text)
