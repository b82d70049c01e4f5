"""Service schemas for API.

Field aliases keep the camelCase names used by the dashboard and by the
stored service list.
"""
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..utils.timestamps import isoformat_z

if TYPE_CHECKING:
    from ..services.checker import CheckResult
    from ..services.history import HistoryEntry


class ServiceCreate(BaseModel):
    """Schema for adding a service. Name and URL are validated by the engine."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    url: Optional[str] = None
    timeout: int = Field(default=5000, ge=1)  # milliseconds
    expected_status: int = Field(default=200, alias="expectedStatus", ge=100, le=599)


class CheckResultResponse(BaseModel):
    """One probe outcome."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    url: Optional[str] = None
    status: str  # up, down, unknown
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    response_time: Optional[int] = Field(default=None, alias="responseTime")
    last_checked: Optional[str] = Field(default=None, alias="lastChecked")
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: "CheckResult") -> "CheckResultResponse":
        return cls(
            name=result.name,
            url=result.url,
            status=result.status,
            status_code=result.status_code,
            response_time=result.response_time_ms,
            last_checked=isoformat_z(result.observed_at),
            error=result.error,
        )


class ServiceStatusResponse(CheckResultResponse):
    """Current status of a service plus uptime over retained history."""
    uptime: str = "100.00"


class HistoryEntryResponse(BaseModel):
    """A retained history entry."""
    model_config = ConfigDict(populate_by_name=True)

    timestamp: str
    status: str
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    response_time: Optional[int] = Field(default=None, alias="responseTime")
    error: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: "HistoryEntry") -> "HistoryEntryResponse":
        return cls(
            timestamp=isoformat_z(entry.timestamp),
            status=entry.status,
            status_code=entry.status_code,
            response_time=entry.response_time_ms,
            error=entry.error,
        )


class ServiceHistoryResponse(BaseModel):
    """History of one service with its uptime."""
    name: str
    history: List[HistoryEntryResponse]
    uptime: str
