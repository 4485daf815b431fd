"""Root CLI group for radiopulse."""

from __future__ import annotations

import click

from radiopulse import __version__
from radiopulse.utils.log import set_log_level


@click.group()
@click.version_option(version=__version__, prog_name="radiopulse")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Minimum log level (defaults to $LOG_LEVEL or info)",
)
def cli(log_level: str | None) -> None:
    """radiopulse: live radio capture, transcription and topic tracking."""
    if log_level:
        set_log_level(log_level)


# Import and register subcommands
from radiopulse.cli.init_cmd import init_cmd  # noqa: E402
from radiopulse.cli.run_cmd import run_cmd  # noqa: E402
from radiopulse.cli.extract_cmd import extract_cmd  # noqa: E402

cli.add_command(init_cmd, "init")
cli.add_command(run_cmd, "run")
cli.add_command(extract_cmd, "extract")
