"""Transcription providers: OpenAI Whisper and Gemini (OpenAI-compatible endpoint)."""

from __future__ import annotations

import base64
from pathlib import Path

import openai
from pydantic import ValidationError

from radiopulse.models.config import TranscriptionConfig
from radiopulse.models.transcription import CaptionSegment
from radiopulse.providers.base import (
    ProviderConfigError,
    ProviderError,
    TranscriptionProvider,
)
from radiopulse.utils.llm_json import find_json_array
from radiopulse.utils.log import log_warning

GOOGLE_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"

GEMINI_SYSTEM_PROMPT = (
    "You are a helpful assistant that transcribes radio broadcasts accurately, "
    "providing structured results."
)

GEMINI_PROMPT = """Please transcribe this radio stream, and classify whether each \
segment is a commercial advertisement or contains music.

Return ONLY a JSON array. Each element must have exactly these fields:
- "timecode": position in the clip as MM:SS
- "caption": the spoken text
- "isCommercial": true if the segment is an advertisement
- "isMusic": true if the segment is music"""


def format_timecode(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    total = max(int(seconds), 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _read_audio(provider: str, audio_path: Path) -> bytes | None:
    try:
        return audio_path.read_bytes()
    except FileNotFoundError:
        log_warning(f"{provider}: audio file not found: {audio_path}")
        return None
    except OSError as e:
        raise ProviderError(provider, f"cannot read {audio_path}: {e}") from e


class WhisperTranscription:
    """Transcription via the OpenAI audio API (Whisper).

    Whisper does not classify content, so every caption is marked as
    neither commercial nor music.
    """

    name = "openai"

    def __init__(self, api_key: str, model: str = "whisper-1", *, timeout: float = 120.0):
        self.model = model
        self._client = openai.AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def transcribe(self, audio_path: Path) -> list[CaptionSegment]:
        audio_path = Path(audio_path)
        data = _read_audio(self.name, audio_path)
        if data is None:
            return []

        try:
            response = await self._client.audio.transcriptions.create(
                model=self.model,
                file=(audio_path.name, data),
                response_format="verbose_json",
                timestamp_granularities=["segment"],
            )
        except openai.OpenAIError as e:
            raise ProviderError(self.name, str(e)) from e

        segments = getattr(response, "segments", None)
        if not isinstance(segments, list):
            log_warning(f"{self.name}: no segments in transcription response")
            return []

        captions = []
        for seg in segments:
            text = (getattr(seg, "text", "") or "").strip()
            if not text:
                continue
            captions.append(CaptionSegment(
                timecode=format_timecode(getattr(seg, "start", 0.0) or 0.0),
                text=text,
            ))
        return captions


class GeminiTranscription:
    """Transcription with commercial/music classification via Gemini."""

    name = "google"

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        *,
        timeout: float = 120.0,
        base_url: str = GOOGLE_OPENAI_BASE_URL,
    ):
        self.model = model
        self._client = openai.AsyncOpenAI(
            api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0
        )

    async def transcribe(self, audio_path: Path) -> list[CaptionSegment]:
        audio_path = Path(audio_path)
        data = _read_audio(self.name, audio_path)
        if data is None:
            return []

        audio_format = audio_path.suffix.lstrip(".").lower() or "mp3"
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": GEMINI_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": GEMINI_PROMPT},
                            {
                                "type": "input_audio",
                                "input_audio": {
                                    "data": base64.b64encode(data).decode("ascii"),
                                    "format": audio_format,
                                },
                            },
                        ],
                    },
                ],
            )
        except openai.OpenAIError as e:
            raise ProviderError(self.name, str(e)) from e

        content = response.choices[0].message.content if response.choices else None
        return parse_caption_items(self.name, content)


def parse_caption_items(provider: str, text: str | None) -> list[CaptionSegment]:
    """Parse a JSON caption array; malformed items are dropped."""
    items = find_json_array(text)
    if items is None:
        log_warning(f"{provider}: failed to parse transcription result")
        return []

    captions = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            captions.append(CaptionSegment.model_validate(item))
        except ValidationError:
            continue
    return captions


def create_transcription_provider(config: TranscriptionConfig) -> TranscriptionProvider | None:
    """Build the configured transcription provider, or None when disabled."""
    if not config.enabled:
        return None

    if config.provider == "openai":
        if not config.openai_api_key:
            raise ProviderConfigError("OpenAI API key is required for transcription")
        return WhisperTranscription(
            config.openai_api_key, config.openai_model, timeout=config.timeout_seconds
        )
    if config.provider == "google":
        if not config.google_api_key:
            raise ProviderConfigError("Google API key is required for transcription")
        return GeminiTranscription(
            config.google_api_key, config.google_model, timeout=config.timeout_seconds
        )
    raise ProviderConfigError(f"Unknown transcription provider: {config.provider}")
