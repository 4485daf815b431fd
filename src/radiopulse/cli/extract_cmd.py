"""radiopulse extract — run topic extraction on a piece of text."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from radiopulse.utils.log import log_error, log_warning

console = Console()


@click.command()
@click.argument("source")
@click.option("--station-name", default=None, help="Station name to mention in the prompt")
@click.option(
    "--config", "-c",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to radiopulse.yaml",
)
@click.option(
    "--provider",
    default=None,
    type=click.Choice(["openai", "google", "anthropic"]),
    help="Override the configured extraction provider",
)
def extract_cmd(
    source: str, station_name: str | None, config: str | None, provider: str | None
) -> None:
    """Extract topics from SOURCE, a text file path or literal text (- for stdin)."""
    from radiopulse.providers.base import ProviderConfigError
    from radiopulse.providers.extraction import create_extraction_provider
    from radiopulse.settings import load_settings
    from radiopulse.store.memory import MemoryStore
    from radiopulse.topics.engine import TopicExtractionEngine

    if source == "-":
        text = click.get_text_stream("stdin").read()
    elif Path(source).is_file():
        text = Path(source).read_text()
    else:
        text = source

    settings = load_settings(config)
    if provider:
        settings.topic_extraction.provider = provider

    try:
        extractor = create_extraction_provider(settings.topic_extraction)
    except ProviderConfigError as e:
        log_error(str(e))
        raise SystemExit(1)

    engine = TopicExtractionEngine(MemoryStore(), extractor, settings.topics)
    topics = asyncio.run(engine.extract_topics_from_text(text, station_name))
    if not topics:
        log_warning("No topics extracted")
        return

    table = Table(title="Extracted Topics", show_lines=True)
    table.add_column("Topic", style="bold")
    table.add_column("Normalized")
    table.add_column("Relevance", justify="right")
    for topic in sorted(topics, key=lambda t: t.relevance_score, reverse=True):
        table.add_row(topic.name, topic.normalized_name, f"{topic.relevance_score:.2f}")
    console.print(table)
