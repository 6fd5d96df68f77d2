"""Observer hooks for dispatch engine events."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


class DispatchObserver:
    """Base observer with no-op hooks for dispatch lifecycle events."""

    def on_mode_change(self, mode: str) -> None:
        """Called when the engine enters a new mode (including idle)."""

    def on_result(self, mode: str, result: Any) -> None:
        """Called when a request completes and its result is recorded."""

    def on_failure(self, mode: str, error: str) -> None:
        """Called when a request fails."""

    def on_batch_complete(self, results: List[Any], success: bool) -> None:
        """Called once a batch has joined."""

    def on_throughput(self, request_count: int, requests_per_second: float) -> None:
        """Called on every continuous-mode rate sample."""


class NullDispatchObserver(DispatchObserver):
    """Default observer that ignores all notifications."""

    pass


class CompositeDispatchObserver(DispatchObserver):
    """Fan-out observer that forwards events to multiple observers."""

    def __init__(self, observers: Optional[List[DispatchObserver]] = None) -> None:
        self._observers: List[DispatchObserver] = [
            obs for obs in (observers or []) if obs is not None
        ]

    def add_observer(self, observer: Optional[DispatchObserver]) -> None:
        if observer is not None:
            self._observers.append(observer)

    def _dispatch(self, method: str, *args: Any, **kwargs: Any) -> None:
        for observer in list(self._observers):
            callback = getattr(observer, method, None)
            if not callable(callback):
                continue
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Observer callback {method} failed: {e}")

    def on_mode_change(self, mode: str) -> None:
        self._dispatch("on_mode_change", mode)

    def on_result(self, mode: str, result: Any) -> None:
        self._dispatch("on_result", mode, result)

    def on_failure(self, mode: str, error: str) -> None:
        self._dispatch("on_failure", mode, error)

    def on_batch_complete(self, results: List[Any], success: bool) -> None:
        self._dispatch("on_batch_complete", results, success)

    def on_throughput(self, request_count: int, requests_per_second: float) -> None:
        self._dispatch("on_throughput", request_count, requests_per_second)
