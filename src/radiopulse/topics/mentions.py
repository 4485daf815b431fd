"""Locate literal topic occurrences inside transcription captions."""

from __future__ import annotations

import re

from radiopulse.models.topic import TopicMention
from radiopulse.models.transcription import Transcription

CONTEXT_WORDS = 10


def _context_before(text: str, words: int) -> str:
    parts = text.split()
    if len(parts) > words:
        context = " ".join(parts[-words:])
        return context + " " if text.endswith(" ") else context
    return text.lstrip()


def _context_after(text: str, words: int) -> str:
    parts = text.split()
    if len(parts) > words:
        return " ".join(parts[:words])
    return text.rstrip()


def find_topic_mentions(
    transcription: Transcription,
    topic_id: str,
    normalized_name: str,
    *,
    context_words: int = CONTEXT_WORDS,
) -> list[TopicMention]:
    """Return every case-insensitive whole-word match of ``normalized_name``.

    Commercial and music captions are skipped. ``segment_index`` is the
    caption's index and ``position`` the match offset within that caption.
    """
    if not transcription.id or not normalized_name.strip():
        return []

    pattern = re.compile(rf"\b{re.escape(normalized_name.strip())}\b", re.IGNORECASE)
    mentions = []
    for index, caption in enumerate(transcription.captions):
        if caption.is_filtered or not caption.text:
            continue
        text = caption.text
        for match in pattern.finditer(text):
            start, end = match.span()
            mentions.append(TopicMention(
                transcription_id=transcription.id,
                topic_id=topic_id,
                match_text=match.group(),
                context_before=_context_before(text[:start], context_words),
                context_after=_context_after(text[end:], context_words),
                segment_index=index,
                position=start,
            ))
    return mentions
