from typing import Protocol

import httpx
import structlog

from gateway.config import settings
from gateway.core.errors import (
    DispatchError,
    ProviderMalformedResponse,
    ProviderRejected,
    ProviderTimeout,
    ProviderUnavailable,
)
from gateway.core.models import MessageContent

logger = structlog.get_logger()


class MessageProvider(Protocol):
    """Sends one message and returns the provider's message id.

    Raises DispatchError on any failure.
    """

    async def send(self, destination: str, content: MessageContent, channel_type: str) -> str: ...


class HttpProvider:
    """Shared lifecycle and error mapping for REST-backed providers."""

    channel: str = ""
    label: str = ""  # prefix for caller-visible failure messages

    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.timeout = timeout or settings.PROVIDER_TIMEOUT_SECONDS
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def initialize(self):
        self._http = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        logger.info("provider.initialized", channel=self.channel)

    async def shutdown(self):
        if self._http:
            await self._http.aclose()
            self._http = None

    def missing_settings(self) -> list[str]:
        return []

    def fail(self, exc_type: type[DispatchError], detail: str) -> DispatchError:
        return exc_type(f"{self.label} sending failed: {detail}", channel=self.channel)

    async def _post(self, url: str, **kwargs) -> dict:
        """POST and return the decoded JSON body, mapping httpx errors to DispatchError."""
        missing = self.missing_settings()
        if missing:
            raise self.fail(ProviderUnavailable, f"provider not configured (missing {', '.join(missing)})")
        if self._http is None:
            raise self.fail(ProviderUnavailable, "provider client is not initialized")

        try:
            resp = await self._http.post(url, **kwargs)
        except httpx.TimeoutException as e:
            raise self.fail(ProviderTimeout, f"request timed out ({e})") from e
        except httpx.TransportError as e:
            raise self.fail(ProviderUnavailable, str(e)) from e

        if resp.is_error:
            raise self.fail(ProviderRejected, f"HTTP {resp.status_code}: {resp.text[:300]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise self.fail(ProviderMalformedResponse, "response body is not JSON") from e
        if not isinstance(data, dict):
            raise self.fail(ProviderMalformedResponse, "response body is not a JSON object")
        return data
