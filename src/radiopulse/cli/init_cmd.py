"""radiopulse init — write a starter configuration file."""

from __future__ import annotations

from pathlib import Path

import click

from radiopulse.cli.options import parse_stations
from radiopulse.models.config import Settings, StreamConfig
from radiopulse.models.station import StationRef
from radiopulse.settings import DEFAULT_CONFIG
from radiopulse.utils.io import write_yaml
from radiopulse.utils.log import log_error, log_success


@click.command()
@click.option(
    "--output", "-o",
    default=DEFAULT_CONFIG,
    type=click.Path(dir_okay=False),
    help="Where to write the config file",
)
@click.option(
    "--station", "stations",
    multiple=True,
    callback=parse_stations,
    help="Station to capture, as ID=URL (repeatable)",
)
@click.option("--segment-dir", default=None, help="Base directory for segment files")
@click.option("--segment-length", default=None, type=int, help="Segment length in seconds")
@click.option("--keep", default=None, type=int, help="Segments to keep per station")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init_cmd(
    output: str,
    stations: list[StationRef],
    segment_dir: str | None,
    segment_length: int | None,
    keep: int | None,
    force: bool,
) -> None:
    """Write a config file with defaults. API keys belong in .env."""
    path = Path(output).resolve()
    if path.exists() and not force:
        log_error(f"Config already exists: {path} (use --force to overwrite)")
        raise SystemExit(1)

    settings = Settings(stations=stations)
    if segment_dir:
        settings.orchestrator.base_segment_dir = segment_dir
    stream_overrides = {
        k: v for k, v in {"segment_length": segment_length, "keep_segments": keep}.items()
        if v is not None
    }
    try:
        settings.orchestrator.stream = StreamConfig.model_validate(
            {**settings.orchestrator.stream.model_dump(), **stream_overrides}
        )
    except ValueError as e:
        log_error(f"Invalid stream settings: {e}")
        raise SystemExit(1)

    write_yaml(path, settings.model_dump(mode="json", exclude_none=True))

    log_success(f"Config written: {path}")
    log_success(f"Stations: {len(stations)}")
    click.echo(f"\nNext: put API keys in .env, then radiopulse run -c {path.name}")
