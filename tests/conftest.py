import pytest

from gateway.core.errors import LedgerError
from gateway.core.models import Channel
from gateway.core.orchestrator import GatewayOrchestrator
from gateway.core.publisher import RewardPublisher
from gateway.output.router import ChannelDispatcher
from tests.fakes import FakeLedger, FakeProvider


@pytest.fixture
def providers():
    return {
        Channel.EMAIL: FakeProvider("email-1"),
        Channel.WHATSAPP: FakeProvider("wamid-1"),
        Channel.TELEGRAM: FakeProvider("42"),
        Channel.SMS: FakeProvider("SM-1"),
    }


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def failing_ledger():
    return FakeLedger(error=LedgerError("ledger down"))


@pytest.fixture
def publisher(ledger):
    return RewardPublisher(ledger)


@pytest.fixture
def orchestrator(providers, publisher):
    return GatewayOrchestrator(ChannelDispatcher(providers), publisher)


@pytest.fixture
def email_body():
    return {
        "to": "a@b.com",
        "subject": "Order #5 Update",
        "body": "<p>x</p>",
        "userId": "u1",
    }
