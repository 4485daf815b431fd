"""Shared click option parsing."""

from __future__ import annotations

import click

from radiopulse.models.station import StationRef


def parse_stations(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> list[StationRef]:
    """Parse repeated ``--station ID=URL`` values."""
    stations = []
    for value in values:
        station_id, sep, url = value.partition("=")
        if not sep or not station_id.strip() or not url.strip():
            raise click.BadParameter(f"expected ID=URL, got {value!r}", ctx=ctx, param=param)
        stations.append(StationRef(id=station_id.strip(), stream_url=url.strip()))
    return stations
