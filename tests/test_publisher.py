import pytest

from gateway.core import rewards
from gateway.core.errors import LedgerUnreachable
from gateway.core.models import Channel, DispatchResult
from gateway.core.publisher import RewardPublisher
from tests.fakes import FakeLedger


def make_event(success=True):
    result = DispatchResult.sent("id") if success else DispatchResult.failed("nope")
    return rewards.build_event("u1", Channel.SMS, "urgent", "Urgent Update", result)


@pytest.mark.asyncio
async def test_publish_posts_event_once():
    ledger = FakeLedger()
    publisher = RewardPublisher(ledger)
    event = make_event()

    assert await publisher.publish(event) is True
    assert ledger.events == [event]


@pytest.mark.asyncio
async def test_publish_swallows_ledger_errors():
    ledger = FakeLedger(error=LedgerUnreachable("connection refused"))
    publisher = RewardPublisher(ledger)

    assert await publisher.publish(make_event()) is False
    assert len(ledger.events) == 1  # attempted once, not retried


@pytest.mark.asyncio
async def test_publish_swallows_unexpected_errors():
    ledger = FakeLedger(error=RuntimeError("bug in client"))
    publisher = RewardPublisher(ledger)

    assert await publisher.publish(make_event(success=False)) is False


@pytest.mark.asyncio
async def test_schedule_runs_in_background_and_drains():
    ledger = FakeLedger()
    publisher = RewardPublisher(ledger)

    publisher.schedule(make_event())
    publisher.schedule(make_event(success=False))
    await publisher.drain()

    assert len(ledger.events) == 2
    assert publisher.pending == 0
    assert [e.points for e in ledger.events] == [4, -1]
