"""
Telegram output via the Bot API sendMessage method.

Messages of type "command" get a one-time reply keyboard with the bot's
standard commands.
"""

import httpx
import structlog

from gateway.config import settings
from gateway.core.errors import ProviderMalformedResponse, ProviderRejected
from gateway.core.models import MessageContent
from gateway.output.base import HttpProvider

logger = structlog.get_logger()

COMMAND_KEYBOARD = {
    "keyboard": [
        [{"text": "/status"}, {"text": "/help"}],
        [{"text": "/orders"}, {"text": "/support"}],
    ],
    "resize_keyboard": True,
    "one_time_keyboard": True,
}


class TelegramProvider(HttpProvider):
    channel = "telegram"
    label = "Telegram message"

    def __init__(
        self,
        bot_token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(timeout=timeout, transport=transport)
        self.bot_token = bot_token if bot_token is not None else settings.TELEGRAM_BOT_TOKEN
        self.base_url = (base_url or settings.TELEGRAM_API_BASE_URL).rstrip("/")

    def missing_settings(self) -> list[str]:
        return [] if self.bot_token else ["TELEGRAM_BOT_TOKEN"]

    async def send(self, destination: str, content: MessageContent, channel_type: str) -> str:
        body = {"chat_id": destination, "text": content.text}
        if channel_type == "command":
            body["reply_markup"] = COMMAND_KEYBOARD

        data = await self._post(f"{self.base_url}/bot{self.bot_token}/sendMessage", json=body)

        # Bot API reports some failures with HTTP 200 and ok=false
        if not data.get("ok", False):
            raise self.fail(ProviderRejected, data.get("description", "ok=false"))
        try:
            message_id = data["result"]["message_id"]
        except (KeyError, TypeError) as e:
            raise self.fail(ProviderMalformedResponse, "response has no message_id") from e

        logger.info("output.telegram.sent", message_id=message_id, type=channel_type)
        return str(message_id)
