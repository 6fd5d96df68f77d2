import asyncio
import heapq
import itertools
from datetime import datetime, timezone
from typing import Iterable, List, Optional

import pytest

from load_panel.core.models import TestRequestSpec, TestResult
from load_panel.utils.errors import NetworkFailure


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast isolated unit tests")


def make_result(execution_time_ms: float = 10.0, intensity: int = 100, user: float = 1.0, system: float = 0.5) -> TestResult:
    return TestResult.model_validate(
        {
            "executionTimeMs": execution_time_ms,
            "intensity": intensity,
            "cpuUsage": {"user": user, "system": system},
            "timestamp": datetime(2024, 1, 1, tzinfo=timezone.utc).isoformat(),
        }
    )


class FakeComputeClient:
    """Backend double. ``failures`` holds 1-based call numbers that should fail."""

    def __init__(self, failures: Iterable[int] = (), gate: Optional[asyncio.Event] = None):
        self.failures = set(failures)
        self.gate = gate
        self.calls: List[TestRequestSpec] = []

    async def compute(self, spec: TestRequestSpec) -> TestResult:
        self.calls.append(spec)
        call_no = len(self.calls)
        if self.gate is not None:
            await self.gate.wait()
        if call_no in self.failures:
            raise NetworkFailure(f"call {call_no} failed")
        return make_result(execution_time_ms=float(call_no), intensity=spec.intensity)

    async def aclose(self) -> None:
        self.closed = True


class FakeTimer:
    """Deterministic clock plus sleep for driving the engine's timers."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._waiters: list = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now + delay, next(self._seq), fut))
        await fut

    async def drain(self) -> None:
        for _ in range(20):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        await self.drain()
        while self._waiters and self._waiters[0][0] <= target:
            deadline, _, fut = heapq.heappop(self._waiters)
            self.now = deadline
            if not fut.done():
                fut.set_result(None)
            await self.drain()
        self.now = target
        await self.drain()


@pytest.fixture
def fake_client():
    return FakeComputeClient()


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def spec():
    return TestRequestSpec(intensity=100)


@pytest.fixture
def result_factory():
    return make_result


@pytest.fixture
def client_factory():
    return FakeComputeClient
