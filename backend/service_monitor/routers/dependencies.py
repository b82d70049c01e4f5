"""Request dependencies."""
from fastapi import Request

from ..services.monitor import MonitorService


def get_monitor(request: Request) -> MonitorService:
    """The monitor service created by the application lifespan."""
    return request.app.state.monitor
