"""Notification settings API endpoints."""
from fastapi import APIRouter, Depends

from ..schemas.notifications import MessageResponse, NotificationConfig
from ..services.monitor import MonitorService
from .dependencies import get_monitor

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=NotificationConfig)
async def get_notifications(monitor: MonitorService = Depends(get_monitor)):
    """Get notification settings with secrets masked."""
    return monitor.get_notifications()


@router.put("", response_model=MessageResponse)
async def update_notifications(
    config: NotificationConfig,
    monitor: MonitorService = Depends(get_monitor),
):
    await monitor.update_notifications(config)
    return MessageResponse(message="Notification settings updated successfully")


@router.post("/test/{channel}", response_model=MessageResponse)
async def test_notification(channel: str, monitor: MonitorService = Depends(get_monitor)):
    """Send a test message on one channel."""
    await monitor.test_channel(channel)
    return MessageResponse(message=f"Test {channel} notification sent successfully")
