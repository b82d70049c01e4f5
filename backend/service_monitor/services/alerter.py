"""Alerter service - fans status-change alerts out to the configured channels."""
import logging
from typing import Dict, List, Optional

import httpx

from ..exceptions import ChannelNotConfiguredError, NotificationError, UnknownChannelError
from ..schemas.notifications import NotificationConfig
from .alert_sink import AlertSink
from .checker import CheckResult
from .email_sender import EmailSink
from .sms_sender import SmsSink
from .status_store import is_transition
from .webhook_sender import DeviceWebhookSink, TeamsSink

logger = logging.getLogger(__name__)

# Channels are always attempted in this order
CHANNEL_ORDER = ("email", "teams", "sms", "iphone")


def build_sinks(
    config: NotificationConfig,
    notification_timeout: float = 10,
    smtp_timeout: float = 30,
    user_agent: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[AlertSink]:
    """Construct one sink per channel, in dispatch order."""
    return [
        EmailSink(config.email, timeout=smtp_timeout),
        TeamsSink(config.teams, timeout=notification_timeout, transport=transport),
        SmsSink(config.sms, timeout=notification_timeout, transport=transport),
        DeviceWebhookSink(
            config.iphone,
            timeout=notification_timeout,
            user_agent=user_agent,
            transport=transport,
        ),
    ]


class NotificationDispatcher:
    """Sends alerts on status transitions, isolating each channel's failures."""

    def __init__(
        self,
        config: Optional[NotificationConfig] = None,
        notification_timeout: float = 10,
        smtp_timeout: float = 30,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.notification_timeout = notification_timeout
        self.smtp_timeout = smtp_timeout
        self.user_agent = user_agent
        self.transport = transport
        self.config = NotificationConfig()
        self.sinks: List[AlertSink] = []
        self.configure(config or NotificationConfig())

    def configure(self, config: NotificationConfig):
        """Replace the config and rebuild every channel sink."""
        self.config = config
        self.sinks = build_sinks(
            config,
            notification_timeout=self.notification_timeout,
            smtp_timeout=self.smtp_timeout,
            user_agent=self.user_agent,
            transport=self.transport,
        )
        for sink in self.sinks:
            if sink.is_configured():
                logger.info(f"{sink.label} notifications configured")
            elif sink.enabled:
                logger.warning(
                    f"{sink.label} notifications enabled but not fully configured "
                    f"(missing: {', '.join(sink.missing_fields())})"
                )
            else:
                logger.debug(f"{sink.label} notifications disabled")

    def get_sink(self, channel: str) -> AlertSink:
        for sink in self.sinks:
            if sink.channel == channel:
                return sink
        raise UnknownChannelError(channel)

    async def dispatch(self, result: CheckResult, previous_status: str) -> Dict[str, bool]:
        """Alert every configured channel if the status changed.

        Returns a map of channel -> sent successfully, for the channels that
        were attempted. Send failures are logged and never raised.
        """
        if not is_transition(previous_status, result.status):
            logger.debug(f"No status change for {result.name}, not sending notifications")
            return {}

        logger.info(
            f"Status changed for {result.name} from {previous_status} to {result.status}, "
            f"sending notifications"
        )

        outcomes: Dict[str, bool] = {}
        for sink in self.sinks:
            if not sink.is_configured():
                logger.debug(f"{sink.label} notifications not configured, skipping {result.name}")
                continue
            try:
                await sink.send_alert(result)
                outcomes[sink.channel] = True
            except Exception as e:
                logger.error(f"Error sending {sink.label} notification for {result.name}: {type(e).__name__}: {e}")
                outcomes[sink.channel] = False
        return outcomes

    async def send_test(self, channel: str):
        """Send a fixed test message on one channel.

        Raises:
            UnknownChannelError: no such channel
            ChannelNotConfiguredError: channel disabled or incomplete
            NotificationError: the provider call failed
        """
        sink = self.get_sink(channel)
        if not sink.is_configured():
            raise ChannelNotConfiguredError(f"{sink.label} notifications are not properly configured")

        try:
            await sink.send_test()
        except Exception as e:
            logger.error(f"Error sending test {sink.label} notification: {type(e).__name__}: {e}")
            raise NotificationError(f"Failed to send test {sink.label} notification: {e}") from e
