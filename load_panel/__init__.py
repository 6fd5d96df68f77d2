"""
Load-Panel: drive load against a compute endpoint and watch it live.

Run a quick burst from Python:
    async with ControlPanel() as panel:
        outcome = await panel.batch(concurrency=10, intensity=500)
"""

__version__ = "0.1.0"

from .core.dispatch import DispatchEngine
from .core.models import TestRequestSpec, TestResult
from .core.panel import ControlPanel, DispatchOutcome
from .core.quota import Admission, QuotaPolicy, UnlockOutcome
from .core.results import ResultAggregator
from .settings import PanelSettings

__all__ = [
    "Admission",
    "ControlPanel",
    "DispatchEngine",
    "DispatchOutcome",
    "PanelSettings",
    "QuotaPolicy",
    "ResultAggregator",
    "TestRequestSpec",
    "TestResult",
    "UnlockOutcome",
]
