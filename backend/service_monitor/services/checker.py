"""Checker service - performs HTTP health checks."""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import httpx

from ..utils.timestamps import utcnow

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_EXPECTED_STATUS = 200
DEFAULT_USER_AGENT = "ServiceMonitor/1.0"


@dataclass(frozen=True)
class ServiceSpec:
    """An HTTP endpoint to probe."""
    name: str
    url: str
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    expected_status: int = DEFAULT_EXPECTED_STATUS


@dataclass(frozen=True)
class CheckResult:
    """Result of a single probe."""
    name: str
    url: str
    status: str  # up, down
    response_time_ms: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    observed_at: datetime = field(default_factory=utcnow)


class CheckerService:
    """Service for probing HTTP endpoints."""

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.transport = transport

    async def check(self, spec: ServiceSpec) -> CheckResult:
        """Issue one GET against the service and classify the response.

        The service is up iff the response code equals the expected status.
        Transport failures (timeout, DNS, refused connection, TLS) produce a
        ``down`` result. Never raises.
        """
        timeout = spec.timeout_ms / 1000
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as client:
                # httpx timeouts are per phase; bound the whole request as well
                response = await asyncio.wait_for(client.get(spec.url), timeout=timeout)
        except (httpx.TimeoutException, asyncio.TimeoutError):
            return self._failure(spec, start, f"timeout of {spec.timeout_ms}ms exceeded")
        except Exception as e:
            return self._failure(spec, start, str(e) or type(e).__name__)

        response_time = self._elapsed_ms(start)
        healthy = response.status_code == spec.expected_status
        logger.debug(
            f"Service {spec.name} returned {response.status_code}, "
            f"expected {spec.expected_status}, healthy={healthy}"
        )

        return CheckResult(
            name=spec.name,
            url=spec.url,
            status="up" if healthy else "down",
            status_code=response.status_code,
            response_time_ms=response_time,
            error=None if healthy else f"Expected status {spec.expected_status}, got {response.status_code}",
        )

    def _failure(
        self,
        spec: ServiceSpec,
        start: float,
        error: str,
    ) -> CheckResult:
        logger.debug(f"Service {spec.name} check failed: {error}")
        return CheckResult(
            name=spec.name,
            url=spec.url,
            status="down",
            status_code=None,
            response_time_ms=self._elapsed_ms(start),
            error=error,
        )

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
