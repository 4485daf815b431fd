"""Helpers for normalizing topic names and relating topics to each other."""

from __future__ import annotations

import re
from dataclasses import dataclass

from radiopulse.models.topic import ExtractedTopic

_RULES = [
    (re.compile(r"^(the|a|an) ", re.IGNORECASE), ""),
    (re.compile(r"'s$", re.IGNORECASE), ""),
    (re.compile(r"s$", re.IGNORECASE), ""),
    (re.compile(r"\s+"), "_"),
]

RELATIONSHIP_THRESHOLD = 0.3


@dataclass(frozen=True)
class TopicRelationship:
    first: ExtractedTopic
    second: ExtractedTopic
    strength: float


def normalize_topic(name: str) -> str:
    """Lowercase, drop a leading article, crude singular, underscores for spaces.

    >>> normalize_topic("The Elections")
    'election'
    """
    normalized = name.lower().strip()
    for pattern, replacement in _RULES:
        normalized = pattern.sub(replacement, normalized)
    return normalized


def calculate_topic_similarity(first: ExtractedTopic, second: ExtractedTopic) -> float:
    """1.0 for equal names, 0.8 for containment, else word Jaccard."""
    a, b = first.normalized_name, second.normalized_name
    if a == b:
        return 1.0
    if b in a or a in b:
        return 0.8

    words_a = a.split("_")
    words_b = b.split("_")
    common = [w for w in words_a if w in words_b]
    return len(common) / (len(words_a) + len(words_b) - len(common))


def find_topic_relationships(
    topics: list[ExtractedTopic], threshold: float = RELATIONSHIP_THRESHOLD
) -> list[TopicRelationship]:
    relationships = []
    for i, first in enumerate(topics):
        for second in topics[i + 1:]:
            strength = calculate_topic_similarity(first, second)
            if strength > threshold:
                relationships.append(TopicRelationship(first, second, strength))
    return relationships


def identify_topic_hierarchy(
    topics: list[ExtractedTopic],
) -> list[tuple[ExtractedTopic, ExtractedTopic]]:
    """Return (parent, child) pairs where the child's name extends the parent's."""
    hierarchy = []
    for parent in topics:
        for child in topics:
            if child is parent:
                continue
            if (
                parent.normalized_name in child.normalized_name
                and len(child.normalized_name) > len(parent.normalized_name)
            ):
                hierarchy.append((parent, child))
    return hierarchy
