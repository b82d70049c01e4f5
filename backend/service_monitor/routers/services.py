"""Service API endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Response

from ..schemas.service import (
    CheckResultResponse,
    ServiceCreate,
    ServiceHistoryResponse,
    ServiceStatusResponse,
)
from ..services.monitor import MonitorService
from .dependencies import get_monitor

router = APIRouter(prefix="/api/services", tags=["services"])


@router.get("", response_model=List[ServiceStatusResponse])
async def list_services(monitor: MonitorService = Depends(get_monitor)):
    """List all services with their current status and uptime."""
    return await monitor.list_statuses()


@router.get("/check", response_model=List[CheckResultResponse])
async def check_services(monitor: MonitorService = Depends(get_monitor)):
    """Force an immediate check of every service."""
    return await monitor.check_all()


@router.post("", response_model=ServiceStatusResponse, status_code=201)
async def add_service(service: ServiceCreate, monitor: MonitorService = Depends(get_monitor)):
    """Add a service and check it immediately."""
    return await monitor.add_service(service)


@router.delete("/{name}", status_code=204)
async def remove_service(name: str, monitor: MonitorService = Depends(get_monitor)):
    await monitor.remove_service(name)
    return Response(status_code=204)


@router.get("/{name}/history", response_model=ServiceHistoryResponse)
async def get_service_history(name: str, monitor: MonitorService = Depends(get_monitor)):
    return await monitor.get_history(name)
