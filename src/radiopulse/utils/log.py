"""Console logging helpers using Rich."""

from __future__ import annotations

import os
from datetime import datetime

from rich.console import Console

console = Console(stderr=True)

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40}
_level = _LEVELS.get(os.environ.get("LOG_LEVEL", "info").lower(), 20)


def set_log_level(level: str) -> None:
    """Set the minimum level printed (debug | info | warning | error)."""
    global _level
    try:
        _level = _LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


def _emit(threshold: int, message: str, *, style: str = "") -> None:
    if _level > threshold:
        return
    ts = datetime.now().strftime("%H:%M:%S")
    console.print(f"[dim]\\[{ts}][/dim] {message}", style=style, highlight=False)


def log(message: str, *, style: str = "bold") -> None:
    """Log a timestamped message."""
    _emit(20, message, style=style)


def log_step(step: str, message: str) -> None:
    """Log a message tagged with the component that produced it."""
    _emit(20, f"[bold cyan]{step}[/bold cyan] {message}")


def log_debug(step: str, message: str) -> None:
    """Log a debug message; hidden unless LOG_LEVEL=debug."""
    _emit(10, f"[dim]{step} {message}[/dim]")


def log_success(message: str) -> None:
    """Log a success message."""
    _emit(20, f"[green]✓[/green] {message}")


def log_warning(message: str) -> None:
    """Log a warning message."""
    _emit(30, f"[yellow]⚠[/yellow] {message}")


def log_error(message: str) -> None:
    """Log an error message."""
    _emit(40, f"[red]✗[/red] {message}")
