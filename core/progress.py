"""
Advisory progress tracking.

Progress is reported through an injected reporter so pipelines never write
to shared output state. Totals are captured once, before iteration, and are
never re-validated; a source that grows during the run can push ``processed``
past ``total``.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class ProgressState:
    """Monotonic processed-count against a point-in-time total"""

    def __init__(self, total: Optional[int] = None):
        self.total = total
        self.processed = 0

    def advance(self, count: int = 1) -> None:
        if count < 0:
            raise ValueError("progress cannot move backwards")
        self.processed += count

    @property
    def remaining(self) -> Optional[int]:
        if self.total is None:
            return None
        return max(self.total - self.processed, 0)

    @property
    def percent_remaining(self) -> Optional[float]:
        """(remaining / initial) * 100, or None when the total is unknown or zero"""
        if not self.total:
            return None
        return (self.remaining / self.total) * 100


class ProgressReporter(ABC):
    """Receives progress updates from loaders and pipelines"""

    @abstractmethod
    def report(self, stage: str, state: ProgressState) -> None:
        pass

    def stage_started(self, stage: str, total: Optional[int]) -> None:
        pass

    def stage_finished(self, stage: str, state: ProgressState) -> None:
        pass


class NullProgressReporter(ProgressReporter):
    def report(self, stage: str, state: ProgressState) -> None:
        pass


class LoggingProgressReporter(ProgressReporter):
    """
    Logs percent remaining.

    ``every`` throttles by number of report calls per stage, not by records:
    streams report once per row, batch loads once per chunk. The update that
    reaches zero remaining is always logged, as are stage boundaries.
    """

    def __init__(self, every: int = 1, log: Optional[logging.Logger] = None):
        self.every = max(every, 1)
        self.log = log or logger
        self._calls: Dict[str, int] = {}

    def stage_started(self, stage: str, total: Optional[int]) -> None:
        self._calls[stage] = 0
        self.log.info(f"[{stage}] starting ({total if total is not None else 'unknown'} records)")

    def report(self, stage: str, state: ProgressState) -> None:
        calls = self._calls.get(stage, 0) + 1
        self._calls[stage] = calls
        if calls % self.every != 0 and state.remaining != 0:
            return
        pct = state.percent_remaining
        if pct is None:
            self.log.info(f"[{stage}] processed {state.processed}")
        else:
            self.log.info(f"[{stage}] {pct:.1f}% remaining ({state.processed}/{state.total})")

    def stage_finished(self, stage: str, state: ProgressState) -> None:
        self._calls.pop(stage, None)
        self.log.info(f"[{stage}] finished after {state.processed} records")
