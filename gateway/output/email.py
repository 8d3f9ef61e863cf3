"""
Email output over SMTP (Zoho by default, STARTTLS on 587).

smtplib is blocking, so each send runs in the default executor.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from functools import partial

import structlog

from gateway.config import settings
from gateway.core.errors import ProviderRejected, ProviderTimeout, ProviderUnavailable
from gateway.core.models import MessageContent

logger = structlog.get_logger()

X_MAILER = "Logistics Manager Communication Service"


class EmailProvider:
    channel = "email"

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ):
        self.host = host or settings.ZOHO_SMTP_HOST
        self.port = port or settings.ZOHO_SMTP_PORT
        self.username = username if username is not None else settings.ZOHO_EMAIL
        self.password = password if password is not None else settings.ZOHO_PASSWORD
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS

    async def initialize(self):
        # SMTP connections are per-send; nothing to open here
        logger.info("provider.initialized", channel=self.channel, host=self.host)

    async def shutdown(self):
        return

    def missing_settings(self) -> list[str]:
        values = {"ZOHO_EMAIL": self.username, "ZOHO_PASSWORD": self.password}
        return [name for name, value in values.items() if not value]

    def build_message(self, destination: str, content: MessageContent, channel_type: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.username
        msg["To"] = destination
        msg["Subject"] = content.subject or ""
        msg["Message-ID"] = make_msgid(domain=self.host)
        msg["X-Priority"] = "1" if channel_type == "report" else "3"
        msg["X-Mailer"] = X_MAILER
        msg.set_content(content.text, subtype="html")
        return msg

    async def send(self, destination: str, content: MessageContent, channel_type: str) -> str:
        missing = self.missing_settings()
        if missing:
            raise ProviderUnavailable(
                f"Email sending failed: provider not configured (missing {', '.join(missing)})",
                channel=self.channel,
            )

        msg = self.build_message(destination, content, channel_type)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, partial(self._deliver, msg))
        except TimeoutError as e:
            raise ProviderTimeout(f"Email sending failed: {e}", channel=self.channel) from e
        except smtplib.SMTPException as e:
            raise ProviderRejected(f"Email sending failed: {e}", channel=self.channel) from e
        except OSError as e:
            raise ProviderUnavailable(f"Email sending failed: {e}", channel=self.channel) from e

        message_id = msg["Message-ID"]
        logger.info("output.email.sent", message_id=message_id, type=channel_type)
        return message_id

    def _deliver(self, msg: EmailMessage):
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            server.starttls()
            server.login(self.username, self.password)
            server.send_message(msg)
