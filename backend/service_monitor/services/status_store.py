"""Status store and transition detection.

Current statuses live only in memory and start empty on every process
start, so the first check of each service after a restart is seen as a
transition from ``unknown`` and alerts.
"""
import logging
from typing import Dict, Iterable, List, Optional

from .checker import CheckResult
from .history import HistoryEntry, HistoryRepository

logger = logging.getLogger(__name__)

UNKNOWN_STATUS = "unknown"


def is_transition(previous_status: str, new_status: str) -> bool:
    """An alert is due whenever the status differs from the previous one."""
    return previous_status != new_status


class StatusStore:
    """Current status and history per service, history backed by storage."""

    def __init__(self, history: HistoryRepository):
        self.history = history
        self._current: Dict[str, CheckResult] = {}
        self._histories: Dict[str, List[HistoryEntry]] = {}

    async def load(self, names: Iterable[str]):
        """Load durable history for the given services into memory."""
        for name in names:
            self._histories[name] = await self.history.load(name)
        logger.info(f"Loaded history for {len(self._histories)} services")

    def get_current(self, name: str) -> Optional[CheckResult]:
        return self._current.get(name)

    def set_current(self, name: str, result: CheckResult):
        self._current[name] = result

    def previous_status(self, name: str) -> str:
        current = self._current.get(name)
        return current.status if current else UNKNOWN_STATUS

    def get_history(self, name: str) -> List[HistoryEntry]:
        return list(self._histories.get(name, []))

    async def append_history(self, name: str, entry: HistoryEntry) -> List[HistoryEntry]:
        """Append an entry and persist the trimmed history."""
        history = self._histories.setdefault(name, [])
        history.append(entry)
        trimmed = await self.history.save(name, history)
        self._histories[name] = trimmed
        return list(trimmed)

    def reset(self, name: str):
        """Start an empty history for a newly added service."""
        self._current.pop(name, None)
        self._histories[name] = []

    async def discard(self, name: str):
        """Forget a service in memory and in durable storage."""
        self._current.pop(name, None)
        self._histories.pop(name, None)
        if await self.history.exists(name):
            await self.history.delete(name)
            logger.info(f"Deleted stored history for {name}")
        else:
            logger.debug(f"No stored history for {name}")

    def snapshot(self) -> Dict[str, CheckResult]:
        return dict(self._current)
