"""Services for checking, scheduling, storing and alerting."""
from .checker import CheckerService, CheckResult, ServiceSpec
from .vault import CredentialVault
from .alerter import NotificationDispatcher
from .monitor import MonitorContext, MonitorService
from .scheduler import SchedulerService

__all__ = [
    "CheckerService",
    "CheckResult",
    "ServiceSpec",
    "CredentialVault",
    "NotificationDispatcher",
    "MonitorContext",
    "MonitorService",
    "SchedulerService",
]
