"""Trend score and connection strength formulas."""

from __future__ import annotations

from datetime import datetime, timedelta

from radiopulse.models.topic import StationTopic

HOUR = timedelta(hours=1)

# (age limit, weight) checked in order
RECENCY_WEIGHTS = [
    (HOUR, 10),
    (3 * HOUR, 5),
    (24 * HOUR, 2),
]


def recency_weight(last_mentioned_at: datetime, now: datetime) -> int:
    age = now - last_mentioned_at
    for limit, weight in RECENCY_WEIGHTS:
        if age < limit:
            return weight
    return 0


def trend_score(edges: list[StationTopic], now: datetime) -> int:
    """Score one topic from all of its station edges.

    3 per distinct station, plus total mentions, plus twice the summed
    recency weights.
    """
    stations = {e.station_id for e in edges}
    mentions = sum(e.mention_count for e in edges)
    recency = sum(recency_weight(e.last_mentioned_at, now) for e in edges)
    return 3 * len(stations) + mentions + 2 * recency


def recency_factor(a: datetime, b: datetime, now: datetime) -> float:
    age_a, age_b = now - a, now - b
    if age_a < 6 * HOUR and age_b < 6 * HOUR:
        return 1.0
    if age_a < 12 * HOUR or age_b < 12 * HOUR:
        return 0.75
    if age_a < 24 * HOUR and age_b < 24 * HOUR:
        return 0.5
    if age_a < 72 * HOUR and age_b < 72 * HOUR:
        return 0.25
    return 0.1


def connection_strength(a: StationTopic, b: StationTopic, now: datetime) -> float:
    factor = recency_factor(a.last_mentioned_at, b.last_mentioned_at, now)
    return a.relevance_score * b.relevance_score * factor
