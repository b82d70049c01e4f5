"""Alert sink base class - one implementation per notification channel."""
from abc import ABC, abstractmethod
from typing import List, Optional

from ..utils.timestamps import isoformat_z
from .checker import CheckResult


class AlertSink(ABC):
    """A configured delivery channel for status-change alerts.

    Sinks are rebuilt from configuration whenever it changes. ``send_alert``
    and ``send_test`` raise on failure; isolation between channels is the
    dispatcher's job.
    """

    channel: str = ""
    label: str = ""

    def __init__(self, enabled: bool):
        self.enabled = enabled

    @abstractmethod
    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty."""

    def is_configured(self) -> bool:
        return self.enabled and not self.missing_fields()

    @abstractmethod
    async def send_alert(self, result: CheckResult):
        """Deliver an alert for a status change."""

    @abstractmethod
    async def send_test(self):
        """Deliver a fixed test message."""


def display_status_code(result: CheckResult) -> str:
    return str(result.status_code) if result.status_code is not None else "N/A"


def display_response_time(result: CheckResult) -> str:
    return f"{result.response_time_ms}ms" if result.response_time_ms is not None else "N/A"


def display_time(result: CheckResult) -> Optional[str]:
    return isoformat_z(result.observed_at)
