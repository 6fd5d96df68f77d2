"""Two-tier quota gate for concurrency and per-request intensity."""

from __future__ import annotations

import enum
import hmac
import logging
from dataclasses import dataclass, replace
from typing import Tuple

logger = logging.getLogger(__name__)


class UnlockOutcome(str, enum.Enum):
    UNLOCKED = "unlocked"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Admission:
    """Decision for a proposed test configuration.

    ``exceeded`` names the ceilings that were over the limit
    ("concurrency", "intensity"); empty when admitted.
    """

    admitted: bool
    exceeded: Tuple[str, ...] = ()

    @property
    def denied(self) -> bool:
        return not self.admitted

    def __bool__(self) -> bool:
        return self.admitted


ADMITTED = Admission(admitted=True)


@dataclass(frozen=True)
class QuotaState:
    """Ceilings plus the Locked -> Unlocked latch."""

    max_concurrency: int
    max_intensity: int
    unlocked: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrency < 1 or self.max_intensity < 1:
            raise ValueError("quota ceilings must be >= 1")

    def evaluate(self, concurrency: int, intensity: int) -> Admission:
        if concurrency < 1 or intensity < 1:
            raise ValueError(
                f"concurrency and intensity must be >= 1, got {concurrency} and {intensity}"
            )
        # Unlocking lifts the ceilings but keeps the positivity check above.
        if self.unlocked:
            return ADMITTED
        exceeded = []
        if concurrency > self.max_concurrency:
            exceeded.append("concurrency")
        if intensity > self.max_intensity:
            exceeded.append("intensity")
        if exceeded:
            return Admission(admitted=False, exceeded=tuple(exceeded))
        return ADMITTED

    def unlocked_state(self) -> "QuotaState":
        return self if self.unlocked else replace(self, unlocked=True)


class QuotaPolicy:
    """Holds the session's quota state and the configured unlock secret."""

    def __init__(self, max_concurrency: int, max_intensity: int, secret: str = ""):
        self._state = QuotaState(max_concurrency=max_concurrency, max_intensity=max_intensity)
        self._secret = secret

    @property
    def state(self) -> QuotaState:
        return self._state

    @property
    def unlocked(self) -> bool:
        return self._state.unlocked

    def admit(self, concurrency: int, intensity: int) -> Admission:
        decision = self._state.evaluate(concurrency, intensity)
        if decision.denied:
            logger.info(
                f"Denied concurrency={concurrency} intensity={intensity}: "
                f"exceeds {', '.join(decision.exceeded)} ceiling"
            )
        return decision

    def unlock(self, candidate: str) -> UnlockOutcome:
        """Compare ``candidate`` to the secret; latch unlocked on a match."""
        if not self._secret or not hmac.compare_digest(
            candidate.encode("utf-8"), self._secret.encode("utf-8")
        ):
            logger.warning("Unlock attempt rejected")
            return UnlockOutcome.REJECTED
        self._state = self._state.unlocked_state()
        logger.info("Quota ceilings unlocked for this session")
        return UnlockOutcome.UNLOCKED
