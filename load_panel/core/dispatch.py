"""Request orchestration: single, batch and continuous dispatch modes."""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, List, Optional, Protocol, Set

from ..utils.errors import EngineBusyError, NetworkFailure
from .models import TestRequestSpec, TestResult
from .observers import CompositeDispatchObserver, DispatchObserver, NullDispatchObserver
from .results import ResultAggregator

logger = logging.getLogger(__name__)


class ComputeBackend(Protocol):
    async def compute(self, spec: TestRequestSpec) -> TestResult: ...


class EngineMode(str, enum.Enum):
    IDLE = "idle"
    SINGLE = "single"
    BATCH = "batch"
    CONTINUOUS = "continuous"


def next_mode(current: EngineMode, requested: EngineMode) -> EngineMode:
    """Return the mode after requesting ``requested`` while in ``current``.

    Returning to idle is always allowed; any other mode may only be
    entered from idle.
    """
    if requested is EngineMode.IDLE:
        return EngineMode.IDLE
    if current is EngineMode.IDLE:
        return requested
    raise EngineBusyError(f"Cannot start {requested.value} mode while {current.value} mode is active")


@dataclass(frozen=True)
class ContinuousRunState:
    """Counters for continuous mode. Transitions return new instances."""

    running: bool = False
    request_count: int = 0
    start_time: Optional[float] = None
    current_rps: float = 0.0

    def start(self, now: float) -> "ContinuousRunState":
        return ContinuousRunState(running=True, request_count=0, start_time=now, current_rps=0.0)

    def record_success(self) -> "ContinuousRunState":
        return replace(self, request_count=self.request_count + 1)

    def sample(self, now: float) -> "ContinuousRunState":
        if self.start_time is None:
            return self
        elapsed = now - self.start_time
        rps = self.request_count / elapsed if elapsed > 0 else 0.0
        return replace(self, current_rps=rps)

    def stop(self) -> "ContinuousRunState":
        return replace(self, running=False, start_time=None)


class DispatchEngine:
    """
    Issues compute requests in one of three mutually exclusive modes and
    feeds completed results into a ResultAggregator.
    """

    def __init__(
        self,
        client: ComputeBackend,
        aggregator: ResultAggregator,
        *,
        continuous_capacity: int = 100,
        dispatch_interval: float = 1.0,
        rate_interval: float = 1.0,
        observer: Optional[DispatchObserver] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the engine.

        Args:
            client: Backend exposing ``async compute(spec)``
            aggregator: Receives completed results
            continuous_capacity: Buffer bound used by continuous mode
            dispatch_interval: Seconds between continuous dispatches
            rate_interval: Seconds between throughput samples
            observer: Optional hook receiving engine events
            clock: Monotonic clock in seconds
            sleep: Coroutine used by the continuous timers
        """
        self.client = client
        self.aggregator = aggregator
        self.continuous_capacity = continuous_capacity
        self.dispatch_interval = dispatch_interval
        self.rate_interval = rate_interval
        self.observer = CompositeDispatchObserver([observer or NullDispatchObserver()])
        self._clock = clock
        self._sleep = sleep

        self.mode = EngineMode.IDLE
        self._run = ContinuousRunState()
        self._generation = 0
        self._dispatch_task: Optional[asyncio.Task] = None
        self._rate_task: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    # -- observable state -------------------------------------------------

    @property
    def continuous_state(self) -> ContinuousRunState:
        return self._run

    @property
    def is_running(self) -> bool:
        return self._run.running

    @property
    def request_count(self) -> int:
        return self._run.request_count

    @property
    def current_rps(self) -> float:
        return self._run.current_rps

    def attach_observer(self, observer: Optional[DispatchObserver]) -> None:
        self.observer.add_observer(observer)

    def _enter(self, mode: EngineMode) -> None:
        self.mode = next_mode(self.mode, mode)
        logger.debug(f"Engine entered {mode.value} mode")
        self.observer.on_mode_change(mode.value)

    def _leave(self) -> None:
        self.mode = next_mode(self.mode, EngineMode.IDLE)
        self.observer.on_mode_change(EngineMode.IDLE.value)

    # -- single / batch ----------------------------------------------------

    async def run_single(self, spec: TestRequestSpec) -> Optional[TestResult]:
        """Issue one request. Returns None if it failed."""
        self._enter(EngineMode.SINGLE)
        try:
            try:
                result = await self.client.compute(spec)
            except NetworkFailure as e:
                logger.error(f"Error running test: {e}")
                self.observer.on_failure(EngineMode.SINGLE.value, str(e))
                return None
            self.aggregator.append(result)
            self.observer.on_result(EngineMode.SINGLE.value, result)
            return result
        finally:
            self._leave()

    async def run_batch(self, n: int, spec: TestRequestSpec) -> List[TestResult]:
        """
        Issue ``n`` identical requests at once and join all of them.

        The aggregator is cleared up front and only refilled when every
        request succeeded, so a failed batch leaves it empty.

        Returns:
            All ``n`` results in issue order, or an empty list on any failure
        """
        if n < 1:
            raise ValueError(f"batch size must be >= 1, got {n}")
        self._enter(EngineMode.BATCH)
        try:
            self.aggregator.clear()
            outcomes = await asyncio.gather(
                *(self.client.compute(spec) for _ in range(n)),
                return_exceptions=True,
            )
            failures = [o for o in outcomes if isinstance(o, BaseException)]
            if failures:
                for failure in failures:
                    if not isinstance(failure, NetworkFailure):
                        raise failure
                logger.error(
                    f"Error running concurrent tests: {len(failures)} of {n} requests failed; "
                    f"first error: {failures[0]}"
                )
                self.observer.on_failure(EngineMode.BATCH.value, str(failures[0]))
                self.observer.on_batch_complete([], False)
                return []
            results = list(outcomes)
            self.aggregator.replace(results)
            self.observer.on_batch_complete(results, True)
            return results
        finally:
            self._leave()

    # -- continuous --------------------------------------------------------

    def start_continuous(self, spec: TestRequestSpec) -> bool:
        """
        Start the fixed-cadence dispatch loop and the throughput sampler.

        Must be called from a running event loop. Returns False (and does
        nothing) when continuous mode is already running.
        """
        if self._run.running:
            return False
        asyncio.get_running_loop()
        self._enter(EngineMode.CONTINUOUS)
        self._generation += 1
        generation = self._generation
        self._run = self._run.start(self._clock())
        logger.info(
            f"Continuous mode started: intensity={spec.intensity} "
            f"every {self.dispatch_interval}s"
        )

        self._rate_task = asyncio.create_task(self._rate_loop(), name="load-panel-rate")
        self._launch(spec, generation)
        self._dispatch_task = asyncio.create_task(
            self._dispatch_loop(spec, generation), name="load-panel-dispatch"
        )
        return True

    def stop_continuous(self) -> None:
        """Cancel both timers. In-flight requests are left to finish."""
        if not self._run.running:
            return
        for task in (self._dispatch_task, self._rate_task):
            if task is not None:
                task.cancel()
        self._dispatch_task = None
        self._rate_task = None
        self._run = self._run.stop()
        logger.info(f"Continuous mode stopped after {self._run.request_count} requests")
        self._leave()

    def sample_throughput(self) -> float:
        """Recompute requests per second since the run started."""
        self._run = self._run.sample(self._clock())
        self.observer.on_throughput(self._run.request_count, self._run.current_rps)
        return self._run.current_rps

    async def _dispatch_loop(self, spec: TestRequestSpec, generation: int) -> None:
        while True:
            await self._sleep(self.dispatch_interval)
            self._launch(spec, generation)

    async def _rate_loop(self) -> None:
        while True:
            await self._sleep(self.rate_interval)
            self.sample_throughput()

    def _launch(self, spec: TestRequestSpec, generation: int) -> None:
        task = asyncio.create_task(self._continuous_request(spec, generation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _continuous_request(self, spec: TestRequestSpec, generation: int) -> None:
        try:
            result = await self.client.compute(spec)
        except NetworkFailure as e:
            logger.warning(f"Error in continuous test: {e}")
            self.observer.on_failure(EngineMode.CONTINUOUS.value, str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error in continuous test: {e}")
            self.observer.on_failure(EngineMode.CONTINUOUS.value, str(e))
            return
        # Late completions from an earlier run must not inflate the new counter.
        if generation == self._generation:
            self._run = self._run.record_success()
        if self.mode not in (EngineMode.IDLE, EngineMode.CONTINUOUS):
            # A single or batch run owns the buffer now.
            logger.debug(f"Dropping late continuous result during {self.mode.value} mode")
            return
        self.aggregator.append(result, capacity=self.continuous_capacity)
        self.observer.on_result(EngineMode.CONTINUOUS.value, result)

    async def aclose(self) -> None:
        """Stop continuous mode and cancel any request still in flight."""
        self.stop_continuous()
        pending = list(self._inflight)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
