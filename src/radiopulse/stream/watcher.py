"""Filesystem watcher for a station's segment directory."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from radiopulse.utils.log import log_debug

PathCallback = Callable[[Path], None]


class _SegmentEventHandler(FileSystemEventHandler):
    """Translate watchdog events into created/removed callbacks."""

    def __init__(self, watcher: SegmentWatcher):
        self._watcher = watcher

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.dispatch(self._watcher.on_created, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._watcher.dispatch(self._watcher.on_removed, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._watcher.dispatch(self._watcher.on_removed, event.src_path)
        self._watcher.dispatch(self._watcher.on_created, event.dest_path)


class SegmentWatcher:
    """Observe one directory and forward prefix-matching file events.

    Callbacks are invoked on the event loop that called ``start``, never on
    the observer thread.
    """

    def __init__(
        self,
        directory: Path,
        prefix: str,
        *,
        on_created: PathCallback,
        on_removed: PathCallback,
    ):
        self.directory = Path(directory)
        self.prefix = prefix
        self.on_created = on_created
        self.on_removed = on_removed
        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: Observer | None = None
        self._closed = False

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        observer = Observer()
        observer.schedule(_SegmentEventHandler(self), str(self.directory), recursive=False)
        observer.daemon = True
        observer.start()
        self._observer = observer

    def dispatch(self, callback: PathCallback, src_path: str | bytes) -> None:
        """Called on the observer thread."""
        path = Path(os.fsdecode(src_path))
        if not path.name.startswith(self.prefix):
            return
        loop = self._loop
        if self._closed or loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(callback, path)
        except RuntimeError:
            # loop closed between the check and the call
            log_debug("Watcher", f"dropped event for {path.name} after shutdown")

    async def stop(self) -> None:
        if self._closed:
            return
        self._closed = True
        observer = self._observer
        self._observer = None
        if observer is not None:
            observer.stop()
            await asyncio.to_thread(observer.join, 5.0)
