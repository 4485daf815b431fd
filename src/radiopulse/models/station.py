"""Station reference model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class StationRef(BaseModel):
    """An already-known station: its id and stream URL."""

    id: str = Field(min_length=1)
    stream_url: str = Field(min_length=1)
    name: str | None = None
    is_online: bool = True
