"""History persistence - per-service check history with a trailing window."""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models import ServiceHistory
from ..utils.db_utils import retry_on_lock
from ..utils.timestamps import utcnow
from .checker import CheckResult

logger = logging.getLogger(__name__)

RETENTION_DAYS = 90


@dataclass(frozen=True)
class HistoryEntry:
    """Durable projection of a CheckResult."""
    timestamp: datetime
    status: str
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: CheckResult) -> "HistoryEntry":
        return cls(
            timestamp=result.observed_at,
            status=result.status,
            status_code=result.status_code,
            response_time_ms=result.response_time_ms,
            error=result.error,
        )


def trim_history(
    entries: Sequence[HistoryEntry],
    retention_days: int = RETENTION_DAYS,
    now: Optional[datetime] = None,
) -> List[HistoryEntry]:
    """Keep only entries newer than ``retention_days`` before ``now``."""
    cutoff = (now or utcnow()) - timedelta(days=retention_days)
    return [entry for entry in entries if entry.timestamp > cutoff]


def calculate_uptime(entries: Sequence[HistoryEntry]) -> float:
    """Percentage of entries that are up; 100 for an empty history."""
    if not entries:
        return 100.0
    up_count = sum(1 for entry in entries if entry.status == "up")
    return up_count / len(entries) * 100


def format_uptime(entries: Sequence[HistoryEntry]) -> str:
    return f"{calculate_uptime(entries):.2f}"


class HistoryRepository:
    """Durable storage of per-service history, one row per entry."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retention_days: int = RETENTION_DAYS,
    ):
        self.session_factory = session_factory
        self.retention_days = retention_days

    async def load(self, name: str) -> List[HistoryEntry]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ServiceHistory)
                .where(ServiceHistory.service_name == name)
                .order_by(ServiceHistory.timestamp, ServiceHistory.id)
            )
            return [self._to_entry(row) for row in result.scalars().all()]

    async def save(self, name: str, entries: Sequence[HistoryEntry]) -> List[HistoryEntry]:
        """Trim to the retention window and replace the stored history.

        The window is measured against the wall clock at the time of the save.
        Returns the trimmed sequence that was written.
        """
        trimmed = trim_history(entries, self.retention_days)

        async with self.session_factory() as session:
            await session.execute(
                delete(ServiceHistory).where(ServiceHistory.service_name == name)
            )
            session.add_all([self._to_row(name, entry) for entry in trimmed])
            await retry_on_lock(session.commit)

        dropped = len(entries) - len(trimmed)
        if dropped:
            logger.debug(f"Trimmed {dropped} history entries older than {self.retention_days} days for {name}")
        return trimmed

    async def delete(self, name: str):
        async with self.session_factory() as session:
            await session.execute(
                delete(ServiceHistory).where(ServiceHistory.service_name == name)
            )
            await retry_on_lock(session.commit)

    async def exists(self, name: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ServiceHistory.id).where(ServiceHistory.service_name == name).limit(1)
            )
            return result.first() is not None

    @staticmethod
    def _to_entry(row: ServiceHistory) -> HistoryEntry:
        return HistoryEntry(
            timestamp=row.timestamp,
            status=row.status,
            status_code=row.status_code,
            response_time_ms=row.response_time_ms,
            error=row.error,
        )

    @staticmethod
    def _to_row(name: str, entry: HistoryEntry) -> ServiceHistory:
        return ServiceHistory(
            service_name=name,
            timestamp=entry.timestamp,
            status=entry.status,
            status_code=entry.status_code,
            response_time_ms=entry.response_time_ms,
            error=entry.error,
        )
