"""
Karma tracker client: posts reward events and reads balances.

Same lifecycle as the provider clients: one httpx.AsyncClient created in
initialize(), closed in shutdown(). Every failure surfaces as LedgerError.
"""

from urllib.parse import quote

import httpx
import structlog

from gateway.config import settings
from gateway.core.errors import LedgerError, LedgerRejected, LedgerUnreachable
from gateway.core.models import RewardEvent

logger = structlog.get_logger()

DEFAULT_LEDGER_LIMIT = 50


class KarmaLedgerClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.KARMA_TRACKER_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.KARMA_TRACKER_API_KEY
        self.timeout = timeout or settings.LEDGER_TIMEOUT_SECONDS
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def initialize(self):
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )
        logger.info("ledger.initialized", base_url=self.base_url)

    async def shutdown(self):
        if self._http:
            await self._http.aclose()
            self._http = None

    # ------------------------------------------------------------------
    # LedgerClient operations
    # ------------------------------------------------------------------

    async def post_event(self, event: RewardEvent) -> dict:
        """Submit one reward event. Returns the tracker's acknowledgement."""
        return await self._request("POST", "/api/karma/events", json=event.to_ledger_record())

    async def get_balance(self, user_id: str) -> dict:
        return await self._request("GET", f"/api/users/{quote(user_id, safe='')}/karma")

    async def get_ledger(self, user_id: str, limit: int = DEFAULT_LEDGER_LIMIT) -> dict:
        return await self._request(
            "GET", f"/api/users/{quote(user_id, safe='')}/karma/ledger", params={"limit": limit}
        )

    # ------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        if self._http is None:
            raise LedgerUnreachable("Karma tracker client is not initialized")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            resp = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning("ledger.request_timeout", method=method, path=path)
            raise LedgerUnreachable(f"Karma tracker timed out: {e}") from e
        except httpx.TransportError as e:
            logger.warning("ledger.request_failed", method=method, path=path, error=str(e))
            raise LedgerUnreachable(f"Karma tracker unreachable: {e}") from e

        if resp.is_error:
            logger.warning(
                "ledger.request_rejected",
                method=method,
                path=path,
                status=resp.status_code,
                detail=resp.text[:300],
            )
            raise LedgerRejected(
                f"Karma tracker rejected request: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise LedgerError(f"Karma tracker returned invalid JSON: {e}") from e
