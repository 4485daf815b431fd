"""Topic extraction prompts, one flavour per provider."""

from __future__ import annotations

from textwrap import dedent

_INSTRUCTIONS = dedent("""\
    Extract key topics from this radio transcription. Focus on:
    - News topics (people, places, events, organizations)
    - Major discussion themes
    - Important conversational topics
    - Cultural or social references

    For each topic:
    - Provide the canonical name (proper capitalization)
    - Provide a normalized form (lowercase, singular, without articles)
    - Assign a relevance score (0.0-1.0) based on importance to the overall discussion

    Guidelines for topics:
    - Focus on substantive discussion topics, not casual mentions
    - Prioritize named entities (people, places, organizations)
    - Combine related subtopics into broader themes when appropriate
    - Bias towards one-word topics unless semantic integrity requires more than one word""")

_RESPONSE_FORMAT = {
    # JSON mode only returns objects, so the array travels under a key
    "openai": (
        'Respond in JSON as an object with a "topics" array of objects '
        "with fields: name, normalizedName, relevanceScore."
    ),
    "google": (
        "Respond in valid JSON format as an array of objects "
        "with fields: name, normalizedName, relevanceScore."
    ),
    "anthropic": (
        "Respond with only a JSON array of objects "
        "with fields: name, normalizedName, relevanceScore."
    ),
}


def context_prefix(station_name: str | None = None) -> str:
    if station_name:
        return f"The following is a transcription from radio station {station_name}."
    return "The following is a radio transcription."


def build_extraction_prompt(provider: str, text: str, station_name: str | None = None) -> str:
    """Build the extraction prompt for ``provider`` around ``text``."""
    try:
        response_format = _RESPONSE_FORMAT[provider]
    except KeyError:
        raise ValueError(f"Unsupported topic extraction provider: {provider}") from None

    return "\n\n".join([
        context_prefix(station_name),
        _INSTRUCTIONS,
        response_format,
        "Here is the transcription:",
        f'"""\n{text}\n"""',
    ])
