"""Realtime topic dispatch and the end-to-end pipeline service."""

from radiopulse.pipeline.dispatcher import RealtimeDispatcher
from radiopulse.pipeline.service import RadioPipeline, build_pipeline
from radiopulse.pipeline.throttle import IntervalThrottle

__all__ = ["IntervalThrottle", "RadioPipeline", "RealtimeDispatcher", "build_pipeline"]
