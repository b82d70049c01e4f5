"""Monitoring context and the operations exposed to the API layer.

``MonitorContext`` owns all mutable monitoring state for the process: the
service list, current statuses, history and the notification sinks. A single
lock guards the service list read of a cycle and every write to the status
and history maps, and administrative changes take the same lock.
"""
import asyncio
import logging
from typing import List, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..config import Settings, get_database_url
from ..database import build_engine, build_session_factory, close_db, init_db
from ..exceptions import ServiceNotFoundError, ValidationError
from ..schemas.notifications import NotificationConfig
from ..schemas.service import (
    CheckResultResponse,
    HistoryEntryResponse,
    ServiceCreate,
    ServiceHistoryResponse,
    ServiceStatusResponse,
)
from .alerter import NotificationDispatcher
from .checker import CheckerService, CheckResult, ServiceSpec
from .history import HistoryEntry, HistoryRepository, format_uptime
from .repository import NotificationRepository, ServiceRepository
from .status_store import UNKNOWN_STATUS, StatusStore
from .vault import CredentialVault

logger = logging.getLogger(__name__)


class MonitorContext:
    """Process-owned monitoring state, constructed at startup."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        engine: Optional[AsyncEngine] = None,
        checker: Optional[CheckerService] = None,
        vault: Optional[CredentialVault] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.engine = engine
        self.session_factory = session_factory
        self.vault = vault or CredentialVault.from_hex(settings.encryption_key)
        self.checker = checker or CheckerService(user_agent=settings.user_agent, transport=transport)
        self.services = ServiceRepository(session_factory)
        self.notifications = NotificationRepository(session_factory, self.vault)
        self.history = HistoryRepository(session_factory, settings.history_retention_days)
        self.store = StatusStore(self.history)
        self.dispatcher = NotificationDispatcher(
            notification_timeout=settings.notification_timeout_seconds,
            smtp_timeout=settings.smtp_timeout_seconds,
            user_agent=settings.user_agent,
            transport=transport,
        )
        self.lock = asyncio.Lock()

    @classmethod
    async def create(cls, settings: Settings, **kwargs) -> "MonitorContext":
        """Open the database, create tables and load persisted state."""
        engine = build_engine(get_database_url(settings))
        await init_db(engine, settings)
        context = cls(settings, build_session_factory(engine), engine=engine, **kwargs)
        await context.load()
        return context

    async def load(self):
        """Load notification config and history. Current statuses start empty."""
        self.dispatcher.configure(await self.notifications.load())
        specs = await self.services.list_specs()
        await self.store.load(spec.name for spec in specs)

    async def close(self):
        if self.engine is not None:
            await close_db(self.engine)

    async def record_result(self, result: CheckResult) -> bool:
        """Apply one probe result: history, current status, then alerts.

        The caller must hold ``self.lock``. Results for services that were
        removed while their probe was in flight are dropped. Persistence
        errors propagate.
        """
        if not await self.services.exists(result.name):
            logger.info(f"Discarding result for removed service {result.name}")
            return False

        previous_status = self.store.previous_status(result.name)
        logger.info(f"{result.name}: previous={previous_status}, current={result.status}")

        await self.store.append_history(result.name, HistoryEntry.from_result(result))
        self.store.set_current(result.name, result)
        await self.dispatcher.dispatch(result, previous_status)
        return True


class MonitorService:
    """Administrative and read operations behind the HTTP API."""

    def __init__(self, context: MonitorContext, scheduler):
        self.context = context
        self.scheduler = scheduler

    async def list_statuses(self) -> List[ServiceStatusResponse]:
        """Current status of every service, with uptime."""
        ctx = self.context
        specs = await ctx.services.list_specs()

        statuses = []
        for spec in specs:
            result = ctx.store.get_current(spec.name)
            uptime = format_uptime(ctx.store.get_history(spec.name))
            if result is None:
                statuses.append(ServiceStatusResponse(name=spec.name, url=spec.url, status=UNKNOWN_STATUS, uptime=uptime))
            else:
                base = CheckResultResponse.from_result(result)
                statuses.append(ServiceStatusResponse(**base.model_dump(), uptime=uptime))
        return statuses

    async def check_all(self) -> List[CheckResultResponse]:
        """Run a check-all cycle now, outside the timer."""
        results = await self.scheduler.check_now()
        return [CheckResultResponse.from_result(result) for result in results]

    async def add_service(self, payload: ServiceCreate) -> ServiceStatusResponse:
        """Register a service and check it immediately."""
        if not payload.name or not payload.url:
            raise ValidationError("Name and URL are required")

        ctx = self.context
        spec = ServiceSpec(
            name=payload.name,
            url=payload.url,
            timeout_ms=payload.timeout,
            expected_status=payload.expected_status,
        )

        async with ctx.lock:
            if await ctx.services.exists(spec.name):
                raise ValidationError("A service with this name already exists")
            await ctx.services.add(spec)
            ctx.store.reset(spec.name)
        logger.info(f"Added service {spec.name} ({spec.url})")

        result = await ctx.checker.check(spec)
        async with ctx.lock:
            if not await ctx.record_result(result):
                # Removed while the first check was in flight
                raise ServiceNotFoundError(spec.name)
            uptime = format_uptime(ctx.store.get_history(spec.name))

        base = CheckResultResponse.from_result(result)
        return ServiceStatusResponse(**base.model_dump(), uptime=uptime)

    async def remove_service(self, name: str):
        """Delete a service with its status and stored history."""
        ctx = self.context
        async with ctx.lock:
            if not await ctx.services.remove(name):
                raise ServiceNotFoundError(name)
            await ctx.store.discard(name)
        logger.info(f"Removed service {name}")

    async def get_history(self, name: str) -> ServiceHistoryResponse:
        ctx = self.context
        if not await ctx.services.exists(name):
            raise ServiceNotFoundError(name)

        history = ctx.store.get_history(name)
        return ServiceHistoryResponse(
            name=name,
            history=[HistoryEntryResponse.from_entry(entry) for entry in history],
            uptime=format_uptime(history),
        )

    def get_notifications(self) -> NotificationConfig:
        """Notification config with secrets masked."""
        return self.context.dispatcher.config.masked()

    async def update_notifications(self, config: NotificationConfig) -> NotificationConfig:
        """Persist a new config and rebuild the channel sinks."""
        ctx = self.context
        async with ctx.lock:
            merged = config.with_secrets_from(ctx.dispatcher.config)
            logger.info("Saving notification settings")
            await ctx.notifications.save(merged)
            ctx.dispatcher.configure(merged)
        return merged.masked()

    async def test_channel(self, channel: str):
        await self.context.dispatcher.send_test(channel)
