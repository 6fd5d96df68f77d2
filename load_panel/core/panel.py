"""Control panel facade: quota admission in front of the dispatch engine."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..client import ComputeClient
from ..settings import PanelSettings
from .dispatch import DispatchEngine
from .models import ResultSummary, TestRequestSpec, TestResult
from .observers import DispatchObserver
from .quota import Admission, QuotaPolicy, UnlockOutcome
from .results import ResultAggregator
from .telemetry import TelemetryPoller


@dataclass
class DispatchOutcome:
    """What a proposal produced: the admission decision and any results."""

    admission: Admission
    results: List[TestResult] = field(default_factory=list)
    started: bool = False

    @property
    def denied(self) -> bool:
        return self.admission.denied


class ControlPanel:
    """
    Wires settings, client, quota policy, aggregator, engine and poller.

    Every dispatch is admitted by the quota policy first; a denied
    proposal dispatches nothing.
    """

    def __init__(
        self,
        settings: Optional[PanelSettings] = None,
        client: Optional[ComputeClient] = None,
        observer: Optional[DispatchObserver] = None,
    ):
        self.settings = settings or PanelSettings()
        self.client = client or ComputeClient(
            self.settings.api_url, timeout=self.settings.request_timeout
        )
        self.policy = QuotaPolicy(
            max_concurrency=self.settings.max_concurrency,
            max_intensity=self.settings.max_intensity,
            secret=self.settings.unlock_secret,
        )
        self.aggregator = ResultAggregator(capacity=self.settings.result_capacity)
        self.engine = DispatchEngine(
            self.client,
            self.aggregator,
            continuous_capacity=self.settings.continuous_capacity,
            dispatch_interval=self.settings.dispatch_interval,
            rate_interval=self.settings.rate_interval,
            observer=observer,
        )
        self.telemetry = TelemetryPoller(self.client, interval=self.settings.telemetry_interval)

    async def __aenter__(self) -> "ControlPanel":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _spec(self, intensity: Optional[int]) -> TestRequestSpec:
        return TestRequestSpec(
            intensity=self.settings.default_intensity if intensity is None else intensity,
            complexity=self.settings.complexity,
        )

    def unlock(self, secret: str) -> UnlockOutcome:
        return self.policy.unlock(secret)

    def admit(self, concurrency: int, intensity: int) -> Admission:
        return self.policy.admit(concurrency, intensity)

    async def single(self, intensity: Optional[int] = None) -> DispatchOutcome:
        spec = self._spec(intensity)
        admission = self.policy.admit(1, spec.intensity)
        if admission.denied:
            return DispatchOutcome(admission)
        result = await self.engine.run_single(spec)
        return DispatchOutcome(admission, [result] if result is not None else [])

    async def batch(
        self, concurrency: Optional[int] = None, intensity: Optional[int] = None
    ) -> DispatchOutcome:
        spec = self._spec(intensity)
        n = self.settings.default_concurrency if concurrency is None else concurrency
        admission = self.policy.admit(n, spec.intensity)
        if admission.denied:
            return DispatchOutcome(admission)
        results = await self.engine.run_batch(n, spec)
        return DispatchOutcome(admission, results)

    def start_continuous(self, intensity: Optional[int] = None) -> DispatchOutcome:
        spec = self._spec(intensity)
        admission = self.policy.admit(1, spec.intensity)
        if admission.denied:
            return DispatchOutcome(admission)
        started = self.engine.start_continuous(spec)
        return DispatchOutcome(admission, started=started)

    def stop_continuous(self) -> None:
        self.engine.stop_continuous()

    def summary(self) -> ResultSummary:
        return self.aggregator.summary()

    async def aclose(self) -> None:
        await self.telemetry.stop()
        await self.engine.aclose()
        await self.client.aclose()
