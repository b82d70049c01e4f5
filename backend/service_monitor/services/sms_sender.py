"""SMS sender - sends alerts through the Twilio Messages REST API."""
import logging
from typing import List, Optional

import httpx

from ..schemas.notifications import SmsChannelConfig
from .alert_sink import AlertSink
from .checker import CheckResult

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
TEST_MESSAGE = "This is a test SMS from the Service Monitor application."


class SmsSink(AlertSink):
    """Twilio SMS gateway."""

    channel = "sms"
    label = "SMS"

    def __init__(
        self,
        config: SmsChannelConfig,
        timeout: float = 10,
        api_base: str = TWILIO_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config.enabled)
        self.config = config
        self.timeout = timeout
        self.api_base = api_base
        self.transport = transport

    def missing_fields(self) -> List[str]:
        required = {
            "accountSid": self.config.account_sid,
            "authToken": self.config.auth_token,
            "from": self.config.from_number,
            "to": self.config.to,
        }
        return [name for name, value in required.items() if not value]

    async def send_alert(self, result: CheckResult):
        body = (
            f"Service Alert: {result.name} is {result.status}. "
            f"URL: {result.url}. Error: {result.error or 'None'}"
        )
        sid = await self._send(body)
        logger.info(f"SMS notification sent for service: {result.name}, SID: {sid}")

    async def send_test(self):
        sid = await self._send(TEST_MESSAGE)
        logger.info(f"Test SMS sent successfully, SID: {sid}")

    async def _send(self, body: str) -> Optional[str]:
        """Create a message and return its SID."""
        url = f"{self.api_base}/Accounts/{self.config.account_sid}/Messages.json"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                url,
                data={"Body": body, "From": self.config.from_number, "To": self.config.to},
                auth=(self.config.account_sid, self.config.auth_token),
            )
            response.raise_for_status()
            return response.json().get("sid")
