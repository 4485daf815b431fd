"""radiopulse run — capture stations and process topics until interrupted."""

from __future__ import annotations

import asyncio
import signal

import click

from radiopulse.cli.options import parse_stations
from radiopulse.models.station import StationRef
from radiopulse.utils.log import log, log_error, log_success


async def _serve(pipeline, stations: list[StationRef], duration: float | None) -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    async with pipeline:
        started = await pipeline.start(stations or None)
        if not started:
            return 1
        log(f"Capturing {len(started)} station(s); press Ctrl+C to stop")
        try:
            await asyncio.wait_for(stop.wait(), timeout=duration)
        except asyncio.TimeoutError:
            pass
        log("Shutting down...")
    return 0


@click.command()
@click.option(
    "--config", "-c",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to radiopulse.yaml",
)
@click.option(
    "--station", "stations",
    multiple=True,
    callback=parse_stations,
    help="Station to capture, as ID=URL (repeatable); overrides the config list",
)
@click.option("--segment-dir", default=None, help="Base directory for segment files")
@click.option(
    "--duration",
    default=None,
    type=float,
    help="Stop after this many seconds instead of waiting for Ctrl+C",
)
def run_cmd(
    config: str | None,
    stations: list[StationRef],
    segment_dir: str | None,
    duration: float | None,
) -> None:
    """Capture radio streams, transcribe segments and track topics."""
    from radiopulse.pipeline.service import build_pipeline
    from radiopulse.providers.base import ProviderConfigError
    from radiopulse.settings import load_settings
    from radiopulse.store.memory import MemoryStore

    try:
        settings = load_settings(config)
    except (OSError, ValueError) as e:
        log_error(f"Cannot load settings: {e}")
        raise SystemExit(1)

    if segment_dir:
        settings.orchestrator.base_segment_dir = segment_dir

    targets = stations or settings.stations
    if not targets:
        log_error("No stations configured. Use --station ID=URL or add them to the config.")
        raise SystemExit(1)

    store = MemoryStore(targets)
    try:
        pipeline = build_pipeline(settings, store, store)
    except ProviderConfigError as e:
        log_error(str(e))
        raise SystemExit(1)

    try:
        code = asyncio.run(_serve(pipeline, targets, duration))
    except Exception as e:
        log_error(f"Pipeline failed: {e}")
        raise SystemExit(1)

    if code:
        log_error("No streams could be started")
        raise SystemExit(code)
    log_success("Stopped")
