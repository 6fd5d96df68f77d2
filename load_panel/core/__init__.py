"""Core load-generation components."""

from .dispatch import ContinuousRunState, DispatchEngine, EngineMode
from .quota import Admission, QuotaPolicy, QuotaState, UnlockOutcome
from .results import ResultAggregator
from .telemetry import TelemetryPoller

__all__ = [
    "Admission",
    "ContinuousRunState",
    "DispatchEngine",
    "EngineMode",
    "QuotaPolicy",
    "QuotaState",
    "ResultAggregator",
    "TelemetryPoller",
    "UnlockOutcome",
]
