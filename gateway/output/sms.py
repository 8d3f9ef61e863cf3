"""
SMS output via the Twilio Messages REST API.
"""

import httpx
import structlog

from gateway.config import settings
from gateway.core.errors import ProviderMalformedResponse
from gateway.core.models import MessageContent
from gateway.output.base import HttpProvider

logger = structlog.get_logger()

SMS_SEGMENT_LIMIT = 160


def truncate_sms(message: str, limit: int = SMS_SEGMENT_LIMIT) -> str:
    """Fit a message into a single SMS segment."""
    if len(message) <= limit:
        return message
    return message[: limit - 3] + "..."


class SmsProvider(HttpProvider):
    channel = "sms"
    label = "SMS"

    def __init__(
        self,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.account_sid = account_sid if account_sid is not None else settings.TWILIO_ACCOUNT_SID
        self.auth_token = auth_token if auth_token is not None else settings.TWILIO_AUTH_TOKEN
        self.from_number = from_number if from_number is not None else settings.TWILIO_PHONE_NUMBER
        self.base_url = (base_url or settings.TWILIO_API_BASE_URL).rstrip("/")

    def missing_settings(self) -> list[str]:
        values = {
            "TWILIO_ACCOUNT_SID": self.account_sid,
            "TWILIO_AUTH_TOKEN": self.auth_token,
            "TWILIO_PHONE_NUMBER": self.from_number,
        }
        return [name for name, value in values.items() if not value]

    async def send(self, destination: str, content: MessageContent, channel_type: str) -> str:
        data = await self._post(
            f"{self.base_url}/2010-04-01/Accounts/{self.account_sid}/Messages.json",
            auth=(self.account_sid, self.auth_token),
            data={"To": destination, "From": self.from_number, "Body": truncate_sms(content.text)},
        )

        sid = data.get("sid")
        if not sid:
            raise self.fail(ProviderMalformedResponse, "response has no sid")

        logger.info("output.sms.sent", message_id=sid, type=channel_type)
        return sid
