"""Fixed-size most-recent window of segment files per station."""

from __future__ import annotations

from radiopulse.models.segment import Segment
from radiopulse.utils.log import log_error, log_step


class RetentionManager:
    """Keep the ``keep`` highest-numbered segments, delete the rest."""

    def __init__(self, keep: int):
        if keep < 0:
            raise ValueError(f"keep must be >= 0, got {keep}")
        self.keep = keep

    def enforce(self, segments: dict[int, Segment]) -> list[Segment]:
        """Delete evicted files and drop them from ``segments`` in place.

        A file that is already gone counts as deleted. Any other failure is
        logged and the entry stays tracked so a later pass retries it.
        """
        if len(segments) <= self.keep:
            return []

        evicted: list[Segment] = []
        for number in sorted(segments, reverse=True)[self.keep:]:
            segment = segments[number]
            try:
                segment.path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                log_error(f"Cleanup: failed to delete segment {segment.name}: {e}")
                continue
            del segments[number]
            evicted.append(segment)

        if evicted:
            names = ", ".join(s.name for s in evicted)
            log_step("Cleanup", f"Deleted {len(evicted)} segment(s) (keep: {self.keep}): {names}")
        return evicted
