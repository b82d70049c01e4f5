"""Webhook senders - Microsoft Teams MessageCards and device (iPhone Shortcuts) webhooks."""
import logging
from typing import List, Optional

import httpx

from ..schemas.notifications import DeviceWebhookChannelConfig, TeamsChannelConfig
from ..utils.timestamps import isoformat_z, utcnow
from .alert_sink import AlertSink, display_response_time, display_status_code, display_time
from .checker import CheckResult

logger = logging.getLogger(__name__)


class _WebhookSink(AlertSink):
    """POSTs JSON to a configured URL."""

    def __init__(
        self,
        enabled: bool,
        webhook_url: str,
        timeout: float = 10,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(enabled)
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def missing_fields(self) -> List[str]:
        return [] if self.webhook_url else ["webhookUrl"]

    async def _post(self, payload: dict) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self.user_agent:
            headers["User-Agent"] = self.user_agent

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(self.webhook_url, json=payload, headers=headers)
            response.raise_for_status()
            return response


class TeamsSink(_WebhookSink):
    """Microsoft Teams incoming webhook."""

    channel = "teams"
    label = "Teams"

    def __init__(self, config: TeamsChannelConfig, **kwargs):
        super().__init__(config.enabled, config.webhook_url, **kwargs)

    async def send_alert(self, result: CheckResult):
        is_up = result.status == "up"
        payload = {
            "@type": "MessageCard",
            "@context": "http://schema.org/extensions",
            "themeColor": "2DC745" if is_up else "DC3545",
            "summary": f"Service Alert: {result.name}",
            "sections": [{
                "activityTitle": f"Service Alert: {result.name}",
                "activitySubtitle": f"Status changed to {result.status}",
                "facts": [
                    {"name": "Service", "value": result.name},
                    {"name": "URL", "value": result.url},
                    {"name": "Status", "value": "Operational" if is_up else "Degraded"},
                    {"name": "Status Code", "value": display_status_code(result)},
                    {"name": "Error", "value": result.error or "None"},
                    {"name": "Response Time", "value": display_response_time(result)},
                    {"name": "Time", "value": display_time(result)},
                ],
                "markdown": True,
            }],
        }
        await self._post(payload)
        logger.info(f"Teams notification sent for service: {result.name}")

    async def send_test(self):
        payload = {
            "@type": "MessageCard",
            "@context": "http://schema.org/extensions",
            "themeColor": "0072C6",
            "summary": "Service Monitor - Test Notification",
            "sections": [{
                "activityTitle": "Service Monitor Test",
                "activitySubtitle": "Test notification from Service Monitor",
                "facts": [
                    {"name": "Status", "value": "Connected"},
                    {"name": "Time", "value": isoformat_z(utcnow())},
                ],
                "markdown": True,
            }],
        }
        await self._post(payload)
        logger.info("Test Teams notification sent successfully")


class DeviceWebhookSink(_WebhookSink):
    """Generic device webhook, e.g. an iPhone Shortcuts automation."""

    channel = "iphone"
    label = "iPhone"

    def __init__(self, config: DeviceWebhookChannelConfig, **kwargs):
        super().__init__(config.enabled, config.webhook_url, **kwargs)

    async def send_alert(self, result: CheckResult):
        detail = f"Error: {result.error}" if result.error else f"Response time: {result.response_time_ms}ms"
        payload = {
            "title": "Service Monitor Alert",
            "text": f"{result.name} is {result.status.upper()}\n{detail}\nURL: {result.url}",
            "input": {
                "service": result.name,
                "status": result.status,
                "url": result.url,
                "statusCode": result.status_code,
                "error": result.error,
                "responseTime": result.response_time_ms,
                "timestamp": display_time(result),
            },
        }
        response = await self._post(payload)
        logger.info(f"iPhone webhook notification sent for service: {result.name}, Status: {response.status_code}")

    async def send_test(self):
        payload = {
            "title": "Service Monitor Test",
            "text": (
                "This is a test notification from your Service Monitor app. "
                "If you receive this, the iPhone webhook is working correctly!"
            ),
            "input": {
                "service": "Test Service",
                "status": "up",
                "url": "https://example.com",
                "responseTime": 150,
                "timestamp": isoformat_z(utcnow()),
            },
        }
        response = await self._post(payload)
        logger.info(f"Test iPhone webhook sent successfully, Status: {response.status_code}")
