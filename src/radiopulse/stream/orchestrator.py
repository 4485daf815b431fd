"""Registry of running StreamManagers, at most one per station."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable

from radiopulse.models.config import OrchestratorConfig, StreamConfig
from radiopulse.models.station import StationRef
from radiopulse.providers.base import TranscriptionProvider
from radiopulse.store.base import PersistenceGateway, StationCatalog
from radiopulse.stream.manager import StreamHealth, StreamManager
from radiopulse.utils.log import log_error, log_step, log_success

ManagerFactory = Callable[..., StreamManager]


class OrchestratorError(Exception):
    """Raised when stations cannot be resolved or started."""


class StreamOrchestrator:
    """Start, stop and inspect capture for many stations."""

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        *,
        gateway: PersistenceGateway | None = None,
        catalog: StationCatalog | None = None,
        transcriber: TranscriptionProvider | None = None,
        manager_factory: ManagerFactory = StreamManager,
    ):
        self.config = config or OrchestratorConfig()
        self.gateway = gateway
        self.catalog = catalog
        self.transcriber = transcriber
        self._manager_factory = manager_factory
        self._active: dict[str, StreamManager] = {}
        self._starting: dict[str, asyncio.Task] = {}

    def station_dir(self, station_id: str) -> Path:
        if not station_id or station_id in (".", "..") or "/" in station_id or "\\" in station_id:
            raise OrchestratorError(f"Invalid station id for a directory name: {station_id!r}")
        return Path(self.config.base_segment_dir) / station_id

    async def start_station(
        self, station_id: str, stream_url: str, overrides: dict | None = None
    ) -> StreamManager:
        """Start capturing a station, or return the manager already doing so."""
        existing = self._active.get(station_id)
        if existing is not None:
            log_step("Orchestrator", f"{station_id}: already running")
            return existing

        task = self._starting.get(station_id)
        if task is None:
            task = asyncio.create_task(
                self._start(station_id, stream_url, overrides),
                name=f"start-{station_id}",
            )
            self._starting[station_id] = task
            task.add_done_callback(lambda _: self._starting.pop(station_id, None))
        return await asyncio.shield(task)

    async def _start(
        self, station_id: str, stream_url: str, overrides: dict | None
    ) -> StreamManager:
        config = self.config.stream
        if overrides:
            config = StreamConfig.model_validate({**config.model_dump(), **overrides})

        manager = self._manager_factory(
            station_id,
            stream_url,
            self.station_dir(station_id),
            config,
            gateway=self.gateway,
            transcriber=self.transcriber,
        )
        await manager.start()
        self._active[station_id] = manager
        log_success(f"Started stream for station {station_id}")
        return manager

    async def _settle_starts(self, tasks: list[asyncio.Task]) -> None:
        # starts that finish here register themselves before we stop them
        if tasks:
            await asyncio.gather(*map(asyncio.shield, tasks), return_exceptions=True)

    async def stop_station(self, station_id: str) -> bool:
        """Stop one station, waiting out a start that is still in flight."""
        task = self._starting.get(station_id)
        await self._settle_starts([task] if task is not None else [])
        manager = self._active.pop(station_id, None)
        if manager is None:
            return False
        await manager.stop()
        log_step("Orchestrator", f"{station_id}: stopped")
        return True

    async def stop_all(self) -> None:
        """Stop every manager concurrently; one failure does not block the rest."""
        await self._settle_starts(list(self._starting.values()))
        managers = list(self._active.items())
        self._active.clear()
        if not managers:
            return

        results = await asyncio.gather(
            *(manager.stop() for _, manager in managers), return_exceptions=True
        )
        for (station_id, _), result in zip(managers, results):
            if isinstance(result, BaseException):
                log_error(f"Error stopping stream for station {station_id}: {result}")
        log_step("Orchestrator", f"Stopped {len(managers)} stream(s)")

    async def start_multiple_stations(
        self,
        stations: list[StationRef] | None = None,
        station_ids: list[str] | None = None,
    ) -> dict[str, StreamManager]:
        """Start each station independently and return the ones that started."""
        if stations is None:
            if self.catalog is None:
                raise OrchestratorError("No stations given and no station catalog configured")
            try:
                stations = await self.catalog.list_online_stations(station_ids)
            except Exception as e:
                raise OrchestratorError(f"Failed to query station catalog: {e}") from e

        if not stations:
            log_step("Orchestrator", "No stations to start")
            return {}

        results = await asyncio.gather(
            *(self.start_station(s.id, s.stream_url) for s in stations),
            return_exceptions=True,
        )

        started: dict[str, StreamManager] = {}
        for station, result in zip(stations, results):
            if isinstance(result, BaseException):
                log_error(f"Failed to start stream for station {station.id}: {result}")
            else:
                started[station.id] = result
        log_step("Orchestrator", f"Started {len(started)}/{len(stations)} stream(s)")
        return started

    def get_active_streams(self) -> dict[str, StreamManager]:
        return dict(self._active)

    def get_active_stream_count(self) -> int:
        return len(self._active)

    def health(self) -> dict[str, StreamHealth]:
        return {station_id: m.health() for station_id, m in self._active.items()}
