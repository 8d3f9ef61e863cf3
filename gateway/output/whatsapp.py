"""
WhatsApp output via the Meta Cloud (Graph) API.
"""

import re

import httpx
import structlog

from gateway.config import settings
from gateway.core.errors import ProviderMalformedResponse
from gateway.core.models import MessageContent
from gateway.output.base import HttpProvider

logger = structlog.get_logger()


class WhatsAppProvider(HttpProvider):
    channel = "whatsapp"
    label = "WhatsApp message"

    def __init__(
        self,
        phone_number_id: str | None = None,
        access_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.phone_number_id = phone_number_id if phone_number_id is not None else settings.WHATSAPP_PHONE_NUMBER_ID
        self.access_token = access_token if access_token is not None else settings.WHATSAPP_ACCESS_TOKEN
        self.base_url = (base_url or settings.WHATSAPP_API_BASE_URL).rstrip("/")

    def missing_settings(self) -> list[str]:
        values = {
            "WHATSAPP_PHONE_NUMBER_ID": self.phone_number_id,
            "WHATSAPP_ACCESS_TOKEN": self.access_token,
        }
        return [name for name, value in values.items() if not value]

    async def send(self, destination: str, content: MessageContent, channel_type: str) -> str:
        # Graph API wants bare digits, no leading +
        to = re.sub(r"\D", "", destination)
        data = await self._post(
            f"{self.base_url}/{self.phone_number_id}/messages",
            headers={"Authorization": f"Bearer {self.access_token}"},
            json={
                "messaging_product": "whatsapp",
                "to": to,
                "type": "text",
                "text": {"body": content.text},
            },
        )

        try:
            message_id = data["messages"][0]["id"]
        except (KeyError, IndexError, TypeError) as e:
            raise self.fail(ProviderMalformedResponse, "response has no message id") from e

        logger.info("output.whatsapp.sent", message_id=message_id, type=channel_type)
        return str(message_id)
