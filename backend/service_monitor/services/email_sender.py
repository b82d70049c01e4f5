"""Email sender - sends alerts via SMTP."""
import asyncio
import html
import logging
import smtplib
import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List

from ..schemas.notifications import EmailChannelConfig
from .alert_sink import AlertSink, display_response_time, display_status_code, display_time
from .checker import CheckResult

logger = logging.getLogger(__name__)

TEST_SUBJECT = "Service Monitor - Test Email"
TEST_BODY = "This is a test email from the Service Monitor application."


def parse_recipients(to_address: str) -> List[str]:
    """Parse comma-separated email addresses into a list."""
    if not to_address:
        return []
    return [addr.strip() for addr in to_address.split(",") if addr.strip()]


class EmailSink(AlertSink):
    """SMTP delivery. The blocking SMTP exchange runs in the default executor."""

    channel = "email"
    label = "Email"

    def __init__(self, config: EmailChannelConfig, timeout: float = 30):
        super().__init__(config.enabled)
        self.config = config
        self.timeout = timeout

    def missing_fields(self) -> List[str]:
        smtp = self.config.smtp
        required = {
            "smtp.host": smtp.host,
            "smtp.auth.user": smtp.auth.user,
            "smtp.auth.pass": smtp.auth.password,
            "to": self.config.to,
        }
        return [name for name, value in required.items() if not value]

    async def send_alert(self, result: CheckResult):
        subject = f"Service Alert: {result.name} is {result.status}"
        await self._send(subject, self._alert_text(result), self._alert_html(result))
        logger.info(f"Email notification sent for service: {result.name}")

    async def send_test(self):
        body_html = (
            "<html><body>"
            "<h2>Test Email Successful</h2>"
            "<p>This is a test email from the Service Monitor application. "
            "If you're receiving this email, your email notifications are properly configured.</p>"
            "<p>You'll receive alerts like this when your monitored services change status.</p>"
            "</body></html>"
        )
        await self._send(TEST_SUBJECT, TEST_BODY, body_html)
        logger.info("Test email sent successfully")

    async def _send(self, subject: str, text: str, body_html: str):
        recipients = parse_recipients(self.config.to)
        if not recipients:
            raise ValueError("No valid recipients found in 'to'")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.config.from_address or self.config.smtp.auth.user
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(body_html, "html"))

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._deliver, msg, recipients)

    def _deliver(self, msg: MIMEMultipart, recipients: List[str]):
        """Blocking SMTP delivery."""
        smtp = self.config.smtp
        from_addr = self.config.from_address or smtp.auth.user
        context = ssl.create_default_context()

        if smtp.secure:
            logger.debug(f"Connecting to {smtp.host}:{smtp.port} with implicit TLS...")
            server = smtplib.SMTP_SSL(smtp.host, smtp.port, timeout=self.timeout, context=context)
        else:
            logger.debug(f"Connecting to {smtp.host}:{smtp.port}...")
            server = smtplib.SMTP(smtp.host, smtp.port, timeout=self.timeout)

        with server:
            if not smtp.secure and smtp.require_tls:
                server.starttls(context=context)
            server.login(smtp.auth.user, smtp.auth.password)
            server.sendmail(from_addr, recipients, msg.as_string())

    def _alert_text(self, result: CheckResult) -> str:
        return (
            f'The service "{result.name}" is currently {result.status}.\n\n'
            f"URL: {result.url}\n"
            f"Status Code: {display_status_code(result)}\n"
            f"Response Time: {display_response_time(result)}\n"
            f"Error: {result.error or 'None'}\n\n"
            f"Time: {display_time(result)}"
        )

    def _alert_html(self, result: CheckResult) -> str:
        color = "#28a745" if result.status == "up" else "#dc3545"
        name = html.escape(result.name)
        url = html.escape(result.url)
        rows = [
            ("Status", f'<span style="color: {color}; font-weight: bold;">{html.escape(result.status)}</span>'),
            ("URL", f'<a href="{url}">{url}</a>'),
            ("Status Code", display_status_code(result)),
            ("Response Time", display_response_time(result)),
            ("Last Checked", display_time(result)),
        ]
        if result.error:
            rows.append(("Error", f'<span style="color: #dc3545;">{html.escape(result.error)}</span>'))

        items = "\n".join(
            f"<tr><td><strong>{label}:</strong></td><td>{value}</td></tr>" for label, value in rows
        )
        return (
            "<html><body>"
            f"<h2>{name} is {html.escape(result.status)}</h2>"
            f"<p>The monitoring system has detected a change in the status of <strong>{name}</strong>.</p>"
            f'<table style="border-left: 4px solid {color}; padding: 15px;">\n{items}\n</table>'
            "<p>Please investigate this issue as soon as possible.</p>"
            "</body></html>"
        )
