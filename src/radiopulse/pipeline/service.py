"""End-to-end pipeline: stream capture, transcription and realtime topics."""

from __future__ import annotations

from radiopulse.models.config import Settings
from radiopulse.models.station import StationRef
from radiopulse.pipeline.dispatcher import RealtimeDispatcher
from radiopulse.providers import (
    TopicExtractionProvider,
    TranscriptionProvider,
    create_extraction_provider,
    create_transcription_provider,
)
from radiopulse.store.base import PersistenceGateway, StationCatalog
from radiopulse.stream.manager import StreamHealth, StreamManager
from radiopulse.stream.orchestrator import ManagerFactory, StreamOrchestrator
from radiopulse.topics.engine import TopicExtractionEngine
from radiopulse.utils.log import log, log_step, log_warning


class RadioPipeline:
    """Wire the orchestrator, topic engine and dispatcher around one gateway."""

    def __init__(
        self,
        settings: Settings,
        gateway: PersistenceGateway,
        catalog: StationCatalog | None = None,
        *,
        transcriber: TranscriptionProvider | None = None,
        extractor: TopicExtractionProvider | None = None,
        manager_factory: ManagerFactory = StreamManager,
    ):
        self.settings = settings
        self.gateway = gateway
        self.orchestrator = StreamOrchestrator(
            settings.orchestrator,
            gateway=gateway,
            catalog=catalog,
            transcriber=transcriber,
            manager_factory=manager_factory,
        )
        self.engine = (
            TopicExtractionEngine(gateway, extractor, settings.topics) if extractor else None
        )
        self.dispatcher = None
        if self.engine is not None and settings.realtime.enabled:
            self.dispatcher = RealtimeDispatcher(
                gateway,
                self.engine,
                settings.realtime,
                segment_length=settings.orchestrator.stream.segment_length,
            )

    async def start(
        self,
        stations: list[StationRef] | None = None,
        station_ids: list[str] | None = None,
    ) -> dict[str, StreamManager]:
        log("[bold]radiopulse[/bold] starting")
        if self.dispatcher is not None:
            await self.dispatcher.start()
        else:
            log_step("Realtime", "Real-time topic processing disabled")

        started = await self.orchestrator.start_multiple_stations(stations, station_ids)
        if not started:
            log_warning("No streams are running")
        return started

    async def stop(self) -> None:
        await self.orchestrator.stop_all()
        if self.dispatcher is not None:
            await self.dispatcher.stop()

    def health(self) -> dict[str, StreamHealth]:
        return self.orchestrator.health()

    async def __aenter__(self) -> RadioPipeline:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()


def build_pipeline(
    settings: Settings,
    gateway: PersistenceGateway,
    catalog: StationCatalog | None = None,
) -> RadioPipeline:
    """Build a pipeline with the providers selected in ``settings``."""
    transcriber = create_transcription_provider(settings.transcription)
    if transcriber is None:
        log_warning("Transcription disabled; segments will only be captured")

    extractor = None
    if settings.realtime.enabled:
        extractor = create_extraction_provider(settings.topic_extraction)

    return RadioPipeline(
        settings, gateway, catalog, transcriber=transcriber, extractor=extractor
    )
