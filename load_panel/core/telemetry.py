"""Background polling of the endpoint's system snapshot."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

from ..utils.errors import NetworkFailure
from .models import SystemInfo

logger = logging.getLogger(__name__)


class TelemetrySource(Protocol):
    async def system_info(self) -> SystemInfo: ...


class TelemetryPoller:
    """Keeps the most recent SystemInfo; failed polls keep the previous one."""

    def __init__(
        self,
        client: TelemetrySource,
        interval: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.interval = interval
        self.latest: Optional[SystemInfo] = None
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> Optional[SystemInfo]:
        try:
            snapshot = await self.client.system_info()
        except NetworkFailure as e:
            logger.warning(f"Error fetching system info: {e}")
            return None
        self.latest = snapshot
        return snapshot

    def start(self) -> None:
        if self.is_polling:
            return
        self._task = asyncio.create_task(self._poll_loop(), name="load-panel-telemetry")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _poll_loop(self) -> None:
        while True:
            await self.poll_once()
            await self._sleep(self.interval)
