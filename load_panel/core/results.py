"""Rolling buffer of completed test results and its summary statistics."""

import statistics
from typing import Iterable, Optional, Tuple

from .models import ResultSummary, TestResult


class ResultAggregator:
    """Newest-first, capacity-bounded container for test results."""

    def __init__(self, capacity: int = 50):
        """
        Initialize the aggregator.

        Args:
            capacity: Default maximum number of retained results
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self._buffer: list = []

    def append(self, result: TestResult, capacity: Optional[int] = None) -> None:
        """Insert a result at the head, evicting the oldest beyond capacity."""
        limit = capacity or self.capacity
        self._buffer.insert(0, result)
        del self._buffer[limit:]

    def replace(self, results: Iterable[TestResult]) -> None:
        """Swap the whole buffer for ``results``, keeping their order."""
        self._buffer = list(results)[: self.capacity]

    def clear(self) -> None:
        self._buffer = []

    @property
    def results(self) -> Tuple[TestResult, ...]:
        return tuple(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def summary(self) -> ResultSummary:
        """
        Compute statistics over the current buffer.

        Returns a ResultSummary with: count, mean execution time, mean CPU
        time (user + system), min and max execution time. All zero when empty.
        """
        if not self._buffer:
            return ResultSummary()

        times = [r.execution_time_ms for r in self._buffer]
        cpu = [r.cpu_total_ms for r in self._buffer]
        return ResultSummary(
            count=len(self._buffer),
            mean_execution_time_ms=statistics.fmean(times),
            mean_cpu_ms=statistics.fmean(cpu),
            min_execution_time_ms=min(times),
            max_execution_time_ms=max(times),
        )
