"""Topic extraction, mention indexing, trends and cross-station connections."""

from radiopulse.topics.engine import TopicExtractionEngine, parse_topics, topic_key
from radiopulse.topics.mentions import find_topic_mentions
from radiopulse.topics.similarity import (
    calculate_topic_similarity,
    find_topic_relationships,
    identify_topic_hierarchy,
    normalize_topic,
)

__all__ = [
    "TopicExtractionEngine",
    "calculate_topic_similarity",
    "find_topic_mentions",
    "find_topic_relationships",
    "identify_topic_hierarchy",
    "normalize_topic",
    "parse_topics",
    "topic_key",
]
