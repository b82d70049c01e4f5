"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx
import pytest
import pytest_asyncio

from service_monitor.config import Settings
from service_monitor.database import build_engine, build_session_factory, init_db
from service_monitor.services.alerter import NotificationDispatcher
from service_monitor.services.checker import CheckResult, ServiceSpec
from service_monitor.services.monitor import MonitorContext, MonitorService
from service_monitor.services.scheduler import SchedulerService
from service_monitor.services.vault import CredentialVault


def make_result(
    name: str,
    status: str = "up",
    status_code: Optional[int] = 200,
    response_time_ms: int = 12,
    error: Optional[str] = None,
    url: Optional[str] = None,
) -> CheckResult:
    return CheckResult(
        name=name,
        url=url or f"https://{name.lower()}.example.com/health",
        status=status,
        status_code=status_code,
        response_time_ms=response_time_ms,
        error=error,
    )


class FakeChecker:
    """Returns scripted results and records which services were probed.

    ``statuses`` maps service name to a status; a service listed in
    ``gates`` blocks until its event is set, with ``started[name]`` set as
    soon as its probe begins.
    """

    def __init__(self, statuses: Optional[Dict[str, str]] = None):
        self.statuses: Dict[str, str] = dict(statuses or {})
        self.calls: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.started: Dict[str, asyncio.Event] = {}

    def gate(self, name: str) -> Tuple[asyncio.Event, asyncio.Event]:
        self.gates[name] = asyncio.Event()
        self.started[name] = asyncio.Event()
        return self.started[name], self.gates[name]

    async def check(self, spec: ServiceSpec) -> CheckResult:
        self.calls.append(spec.name)
        if spec.name in self.gates:
            self.started[spec.name].set()
            await self.gates[spec.name].wait()
        status = self.statuses.get(spec.name, "up")
        if status == "up":
            return make_result(spec.name, url=spec.url, status_code=spec.expected_status)
        return make_result(
            spec.name, "down", status_code=500, url=spec.url,
            error=f"Expected status {spec.expected_status}, got 500",
        )


class RecordingDispatcher(NotificationDispatcher):
    """Dispatcher that remembers every dispatch call."""

    def __init__(self, *args, **kwargs):
        self.dispatched: List[Tuple[str, str, str]] = []
        super().__init__(*args, **kwargs)

    async def dispatch(self, result: CheckResult, previous_status: str):
        self.dispatched.append((result.name, previous_status, result.status))
        return await super().dispatch(result, previous_status)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_path=str(tmp_path), database_url=None, encryption_key=None)


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path, settings: Settings):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine, settings)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def vault() -> CredentialVault:
    return CredentialVault()


@pytest.fixture
def checker() -> FakeChecker:
    return FakeChecker()


@pytest_asyncio.fixture
async def context(settings, session_factory, vault, checker) -> MonitorContext:
    ctx = MonitorContext(settings, session_factory, checker=checker, vault=vault)
    ctx.dispatcher = RecordingDispatcher()
    await ctx.load()
    return ctx


@pytest.fixture
def scheduler(context) -> SchedulerService:
    return SchedulerService(context, interval_seconds=30)


@pytest.fixture
def monitor(context, scheduler) -> MonitorService:
    return MonitorService(context, scheduler)


@pytest.fixture
def ok_transport() -> httpx.MockTransport:
    """Answers 200 to every request."""
    return httpx.MockTransport(lambda request: httpx.Response(200, json={"sid": "SM123"}))
