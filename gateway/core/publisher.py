"""
Best-effort reward publishing.

At most one attempt per event, no retry, no outbox. Failures are logged
here and go no further: the caller's response is already decided.
"""

import asyncio
from typing import Protocol

import structlog

from gateway.core.errors import LedgerError
from gateway.core.models import RewardEvent

logger = structlog.get_logger()


class LedgerClient(Protocol):
    async def post_event(self, event: RewardEvent) -> dict: ...

    async def get_balance(self, user_id: str) -> dict: ...

    async def get_ledger(self, user_id: str, limit: int = 50) -> dict: ...


class RewardPublisher:
    def __init__(self, ledger: LedgerClient):
        self.ledger = ledger
        # Strong refs so scheduled tasks are not garbage collected mid-flight
        self._background_tasks: set[asyncio.Task] = set()

    async def publish(self, event: RewardEvent) -> bool:
        """Post one event to the ledger. Never raises."""
        log = logger.bind(
            user_id=event.user_id,
            channel=event.channel.value,
            classification=event.classification,
            points=event.points,
        )
        try:
            ack = await self.ledger.post_event(event)
        except LedgerError as e:
            log.warning("reward.publish_failed", error=str(e))
            return False
        except Exception:
            log.exception("reward.publish_failed")
            return False

        log.info("reward.published", ack=ack)
        return True

    def schedule(self, event: RewardEvent) -> asyncio.Task:
        """Publish in a background task on the running loop."""
        task = asyncio.create_task(self.publish(event))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._background_tasks)

    async def drain(self):
        """Wait for scheduled publishes to finish (shutdown, tests)."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
