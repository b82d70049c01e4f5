"""Tests for the notification dispatcher and channel sinks."""

from __future__ import annotations

import json
from typing import List
from unittest.mock import patch

import httpx
import pytest

from service_monitor.exceptions import (
    ChannelNotConfiguredError,
    NotificationError,
    UnknownChannelError,
)
from service_monitor.schemas.notifications import NotificationConfig
from service_monitor.services.alerter import CHANNEL_ORDER, NotificationDispatcher

from conftest import make_result


def full_config() -> NotificationConfig:
    return NotificationConfig.model_validate({
        "email": {
            "enabled": True,
            "smtp": {
                "host": "smtp.example.com",
                "port": 587,
                "secure": False,
                "requireTLS": True,
                "auth": {"user": "alerts@example.com", "pass": "hunter2"},
            },
            "from": "alerts@example.com",
            "to": "ops@example.com, oncall@example.com",
        },
        "teams": {"enabled": True, "webhookUrl": "https://teams.example.com/hook"},
        "sms": {
            "enabled": True,
            "accountSid": "AC123",
            "authToken": "token",
            "from": "+15550001111",
            "to": "+15552223333",
        },
        "iphone": {"enabled": True, "webhookUrl": "https://device.example.com/hook"},
    })


class RecordingTransport(httpx.MockTransport):
    """Records each request and answers per-host."""

    def __init__(self, failing_hosts: tuple = ()):
        self.requests: List[httpx.Request] = []
        self.failing_hosts = failing_hosts
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.failing_hosts:
            return httpx.Response(500, text="provider error")
        if request.url.host == "api.twilio.com":
            return httpx.Response(201, json={"sid": "SM123"})
        return httpx.Response(200, text="1")

    def hosts(self) -> List[str]:
        return [request.url.host for request in self.requests]


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def dispatcher(transport) -> NotificationDispatcher:
    return NotificationDispatcher(full_config(), user_agent="ServiceMonitor/1.0", transport=transport)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_no_change_is_noop(self, dispatcher, transport) -> None:
        with patch("service_monitor.services.email_sender.smtplib.SMTP") as smtp:
            outcomes = await dispatcher.dispatch(make_result("A", "up"), "up")

        assert outcomes == {}
        assert transport.requests == []
        smtp.assert_not_called()

    @pytest.mark.asyncio
    async def test_first_observation_alerts(self, dispatcher, transport) -> None:
        with patch("service_monitor.services.email_sender.smtplib.SMTP"):
            outcomes = await dispatcher.dispatch(make_result("A", "up"), "unknown")

        assert outcomes == {"email": True, "teams": True, "sms": True, "iphone": True}

    @pytest.mark.asyncio
    async def test_channels_attempted_in_fixed_order(self, dispatcher, transport) -> None:
        with patch("service_monitor.services.email_sender.smtplib.SMTP"):
            outcomes = await dispatcher.dispatch(make_result("A", "down", 500), "up")

        assert list(outcomes) == list(CHANNEL_ORDER)
        assert transport.hosts() == ["teams.example.com", "api.twilio.com", "device.example.com"]

    @pytest.mark.asyncio
    async def test_mail_failure_does_not_block_other_channels(self, dispatcher, transport) -> None:
        with patch(
            "service_monitor.services.email_sender.smtplib.SMTP",
            side_effect=ConnectionRefusedError("Connection refused"),
        ):
            outcomes = await dispatcher.dispatch(make_result("A", "down", 500), "up")

        assert outcomes == {"email": False, "teams": True, "sms": True, "iphone": True}
        assert transport.hosts() == ["teams.example.com", "api.twilio.com", "device.example.com"]

    @pytest.mark.asyncio
    async def test_provider_rejection_is_isolated(self) -> None:
        transport = RecordingTransport(failing_hosts=("api.twilio.com",))
        dispatcher = NotificationDispatcher(full_config(), transport=transport)

        with patch("service_monitor.services.email_sender.smtplib.SMTP"):
            outcomes = await dispatcher.dispatch(make_result("A", "down", 500), "up")

        assert outcomes == {"email": True, "teams": True, "sms": False, "iphone": True}

    @pytest.mark.asyncio
    async def test_disabled_and_incomplete_channels_skipped(self, transport) -> None:
        config = full_config()
        config.email.enabled = False
        config.sms.auth_token = ""  # e.g. an undecryptable secret
        dispatcher = NotificationDispatcher(config, transport=transport)

        outcomes = await dispatcher.dispatch(make_result("A", "down", 500), "up")

        assert outcomes == {"teams": True, "iphone": True}
        assert transport.hosts() == ["teams.example.com", "device.example.com"]

    @pytest.mark.asyncio
    async def test_default_config_sends_nothing(self, transport) -> None:
        dispatcher = NotificationDispatcher(transport=transport)
        assert await dispatcher.dispatch(make_result("A", "down", 500), "up") == {}
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_configure_rebuilds_sinks(self, transport) -> None:
        dispatcher = NotificationDispatcher(transport=transport)
        config = NotificationConfig()
        config.teams.enabled = True
        config.teams.webhook_url = "https://teams.example.com/hook"
        dispatcher.configure(config)

        assert await dispatcher.dispatch(make_result("A", "down", 500), "up") == {"teams": True}


class TestChannelPayloads:
    @pytest.mark.asyncio
    async def test_teams_message_card(self, dispatcher, transport) -> None:
        result = make_result("A", "down", 503, error="Expected status 200, got 503")
        await dispatcher.get_sink("teams").send_alert(result)

        card = json.loads(transport.requests[0].content)
        assert card["@type"] == "MessageCard"
        assert card["themeColor"] == "DC3545"
        assert card["summary"] == "Service Alert: A"
        facts = {fact["name"]: fact["value"] for fact in card["sections"][0]["facts"]}
        assert facts["Status"] == "Degraded"
        assert facts["Status Code"] == "503"
        assert facts["Error"] == "Expected status 200, got 503"
        assert facts["Response Time"] == "12ms"

    @pytest.mark.asyncio
    async def test_sms_uses_twilio_basic_auth(self, dispatcher, transport) -> None:
        await dispatcher.get_sink("sms").send_alert(make_result("A", "down", None, error="timeout of 5000ms exceeded"))

        request = transport.requests[0]
        assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
        assert request.headers["authorization"].startswith("Basic ")
        body = request.content.decode()
        assert "From=%2B15550001111" in body
        assert "Service+Alert%3A+A+is+down" in body

    @pytest.mark.asyncio
    async def test_device_webhook_payload(self, dispatcher, transport) -> None:
        await dispatcher.get_sink("iphone").send_alert(make_result("A", "up"))

        request = transport.requests[0]
        payload = json.loads(request.content)
        assert request.headers["user-agent"] == "ServiceMonitor/1.0"
        assert payload["title"] == "Service Monitor Alert"
        assert payload["text"].startswith("A is UP\nResponse time: 12ms")
        assert payload["input"]["service"] == "A"
        assert payload["input"]["status"] == "up"
        assert payload["input"]["timestamp"].endswith("Z")

    @pytest.mark.asyncio
    async def test_email_starttls_login_and_recipients(self, dispatcher) -> None:
        with patch("service_monitor.services.email_sender.smtplib.SMTP") as smtp:
            await dispatcher.get_sink("email").send_alert(make_result("A", "down", 500))

        smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server = smtp.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("alerts@example.com", "hunter2")
        from_addr, recipients, message = server.sendmail.call_args.args
        assert from_addr == "alerts@example.com"
        assert recipients == ["ops@example.com", "oncall@example.com"]
        assert "Subject: Service Alert: A is down" in message

    @pytest.mark.asyncio
    async def test_email_implicit_tls(self) -> None:
        config = full_config()
        config.email.smtp.secure = True
        config.email.smtp.port = 465
        dispatcher = NotificationDispatcher(config)

        with patch("service_monitor.services.email_sender.smtplib.SMTP_SSL") as smtp_ssl:
            await dispatcher.get_sink("email").send_alert(make_result("A"))

        assert smtp_ssl.call_args.args == ("smtp.example.com", 465)
        smtp_ssl.return_value.starttls.assert_not_called()


class TestSendTest:
    @pytest.mark.asyncio
    async def test_sends_fixed_payload(self, dispatcher, transport) -> None:
        await dispatcher.send_test("teams")

        card = json.loads(transport.requests[0].content)
        assert card["sections"][0]["activityTitle"] == "Service Monitor Test"

    @pytest.mark.asyncio
    async def test_unconfigured_channel(self, transport) -> None:
        dispatcher = NotificationDispatcher(transport=transport)
        with pytest.raises(ChannelNotConfiguredError, match="Teams notifications are not properly configured"):
            await dispatcher.send_test("teams")

    @pytest.mark.asyncio
    async def test_unknown_channel(self, dispatcher) -> None:
        with pytest.raises(UnknownChannelError):
            await dispatcher.send_test("pager")

    @pytest.mark.asyncio
    async def test_provider_failure_surfaces(self) -> None:
        dispatcher = NotificationDispatcher(
            full_config(), transport=RecordingTransport(failing_hosts=("device.example.com",))
        )
        with pytest.raises(NotificationError, match="Failed to send test iPhone notification"):
            await dispatcher.send_test("iphone")

    @pytest.mark.asyncio
    async def test_email_test_message(self, dispatcher) -> None:
        with patch("service_monitor.services.email_sender.smtplib.SMTP") as smtp:
            await dispatcher.send_test("email")

        message = smtp.return_value.sendmail.call_args.args[2]
        assert "Subject: Service Monitor - Test Email" in message
