"""Stream capture: segmenter supervision, segment tracking and retention."""

from radiopulse.stream.manager import StreamHealth, StreamManager
from radiopulse.stream.orchestrator import OrchestratorError, StreamOrchestrator
from radiopulse.stream.retention import RetentionManager
from radiopulse.stream.segmenter import SegmenterError, SubprocessSegmenter
from radiopulse.stream.watcher import SegmentWatcher

__all__ = [
    "OrchestratorError",
    "RetentionManager",
    "SegmentWatcher",
    "SegmenterError",
    "StreamHealth",
    "StreamManager",
    "StreamOrchestrator",
    "SubprocessSegmenter",
]
