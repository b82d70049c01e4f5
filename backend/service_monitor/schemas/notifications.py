"""Notification configuration schemas.

The same document is returned by the API (secrets masked), accepted on
update, and stored in the settings table (secrets encrypted).
"""
from pydantic import BaseModel, ConfigDict, Field

SECRET_MASK = "***"


class _ChannelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SmtpAuth(_ChannelModel):
    user: str = ""
    password: str = Field(default="", alias="pass")


class SmtpConfig(_ChannelModel):
    host: str = ""
    port: int = Field(default=587, ge=1, le=65535)
    secure: bool = False  # implicit TLS (SMTPS)
    require_tls: bool = Field(default=True, alias="requireTLS")  # STARTTLS
    auth: SmtpAuth = Field(default_factory=SmtpAuth)


class EmailChannelConfig(_ChannelModel):
    enabled: bool = False
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    from_address: str = Field(default="", alias="from")
    to: str = ""  # Comma-separated list of email addresses


class TeamsChannelConfig(_ChannelModel):
    enabled: bool = False
    webhook_url: str = Field(default="", alias="webhookUrl")


class SmsChannelConfig(_ChannelModel):
    enabled: bool = False
    account_sid: str = Field(default="", alias="accountSid")
    auth_token: str = Field(default="", alias="authToken")
    from_number: str = Field(default="", alias="from")
    to: str = ""


class DeviceWebhookChannelConfig(_ChannelModel):
    enabled: bool = False
    webhook_url: str = Field(default="", alias="webhookUrl")
    description: str = "iPhone Shortcuts webhook for SMS forwarding"


class NotificationConfig(_ChannelModel):
    """Per-channel notification settings."""

    email: EmailChannelConfig = Field(default_factory=EmailChannelConfig)
    teams: TeamsChannelConfig = Field(default_factory=TeamsChannelConfig)
    sms: SmsChannelConfig = Field(default_factory=SmsChannelConfig)
    iphone: DeviceWebhookChannelConfig = Field(default_factory=DeviceWebhookChannelConfig)

    def masked(self) -> "NotificationConfig":
        """Copy with secret fields replaced by a mask (empty stays empty)."""
        copy = self.model_copy(deep=True)
        copy.email.smtp.auth.password = _mask(copy.email.smtp.auth.password)
        copy.sms.account_sid = _mask(copy.sms.account_sid)
        copy.sms.auth_token = _mask(copy.sms.auth_token)
        return copy

    def with_secrets_from(self, current: "NotificationConfig") -> "NotificationConfig":
        """Copy where secrets submitted as the mask keep the current values."""
        copy = self.model_copy(deep=True)
        if copy.email.smtp.auth.password == SECRET_MASK:
            copy.email.smtp.auth.password = current.email.smtp.auth.password
        if copy.sms.account_sid == SECRET_MASK:
            copy.sms.account_sid = current.sms.account_sid
        if copy.sms.auth_token == SECRET_MASK:
            copy.sms.auth_token = current.sms.auth_token
        return copy


def _mask(value: str) -> str:
    return SECRET_MASK if value else ""


class MessageResponse(BaseModel):
    """Plain acknowledgement payload."""
    message: str
