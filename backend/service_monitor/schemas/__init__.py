"""Pydantic schemas for API request/response models."""
from .service import (
    ServiceCreate,
    CheckResultResponse,
    ServiceStatusResponse,
    HistoryEntryResponse,
    ServiceHistoryResponse,
)
from .notifications import (
    NotificationConfig,
    EmailChannelConfig,
    SmtpConfig,
    SmtpAuth,
    TeamsChannelConfig,
    SmsChannelConfig,
    DeviceWebhookChannelConfig,
    MessageResponse,
)

__all__ = [
    "ServiceCreate",
    "CheckResultResponse",
    "ServiceStatusResponse",
    "HistoryEntryResponse",
    "ServiceHistoryResponse",
    "NotificationConfig",
    "EmailChannelConfig",
    "SmtpConfig",
    "SmtpAuth",
    "TeamsChannelConfig",
    "SmsChannelConfig",
    "DeviceWebhookChannelConfig",
    "MessageResponse",
]
