from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from .core.models import SystemInfo, TestRequestSpec, TestResult
from .utils.errors import NetworkFailure

logger = logging.getLogger(__name__)


class ComputeClient:
    """Async client for the compute/telemetry endpoint.

    Two operations: ``POST /compute`` and ``GET /system-info``. Any
    transport error, non-2xx status or unparseable body is raised as
    NetworkFailure.
    """

    def __init__(
        self,
        api_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "ComputeClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def compute(self, spec: TestRequestSpec) -> TestResult:
        body = await self._request("POST", "/compute", json=spec.to_payload())
        try:
            return TestResult.model_validate(body)
        except ValidationError as e:
            raise NetworkFailure(f"Malformed compute response: {e}", url=f"{self.api_url}/compute")

    async def system_info(self) -> SystemInfo:
        body = await self._request("GET", "/system-info")
        try:
            return SystemInfo.model_validate(body)
        except ValidationError as e:
            raise NetworkFailure(f"Malformed system-info response: {e}", url=f"{self.api_url}/system-info")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.api_url}{path}"
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkFailure(f"{method} request failed: {e!r}", url=url) from e

        if not resp.is_success:
            raise NetworkFailure(f"{method} returned non-OK response", url=url, status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise NetworkFailure("Response body is not JSON", url=url, status_code=resp.status_code) from e
        if not isinstance(body, dict):
            raise NetworkFailure("Response body is not a JSON object", url=url, status_code=resp.status_code)
        logger.debug(f"{method} {url} -> {resp.status_code}")
        return body
