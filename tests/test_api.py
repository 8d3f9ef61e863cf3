import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from gateway.api.deps import get_ledger_client, get_orchestrator
from gateway.core.errors import LedgerUnreachable, ProviderRejected
from gateway.core.models import Channel, RewardKind
from gateway.core.orchestrator import GatewayOrchestrator
from gateway.core.publisher import RewardPublisher
from gateway.main import app
from gateway.middleware.error_handler import global_exception_handler
from gateway.middleware.logging import LoggingMiddleware
from gateway.output.router import ChannelDispatcher
from tests.fakes import FakeLedger


@pytest.fixture
def client(orchestrator, ledger):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_ledger_client] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert set(data["services"]) == {"email", "whatsapp", "telegram", "sms", "karma_tracker"}


def test_email_order_update(client, ledger, email_body):
    response = client.post("/api/communication/email", json=email_body)

    assert response.status_code == 200
    assert response.json() == {"success": True, "messageId": "email-1"}
    assert "X-Request-ID" in response.headers

    # background task has run by the time TestClient returns
    assert len(ledger.events) == 1
    event = ledger.events[0]
    assert event.classification == "Order Update"
    assert event.points == 2
    assert event.reward_kind is RewardKind.GAIN


@pytest.mark.parametrize(
    "path, body, expected",
    [
        ("/api/communication/whatsapp", {"to": "+1234567890", "message": "hi", "userId": "u"}, "wamid-1"),
        ("/api/communication/telegram", {"chatId": "123", "message": "hi", "userId": "u"}, "42"),
        ("/api/communication/sms", {"to": "+1234567890", "message": "hi", "userId": "u"}, "SM-1"),
    ],
)
def test_channel_routes(client, path, body, expected):
    response = client.post(path, json=body)
    assert response.status_code == 200
    assert response.json() == {"success": True, "messageId": expected}


def test_sms_too_long_returns_500_without_dispatch(client, providers, ledger):
    response = client.post(
        "/api/communication/sms",
        json={"to": "+1234567890", "message": "a" * 161, "userId": "u2"},
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Message must not exceed 160 characters"}
    assert providers[Channel.SMS].calls == []
    assert ledger.events == []


def test_missing_field_names_the_field(client, providers):
    response = client.post("/api/communication/email", json={"to": "a@b.com", "subject": "s", "body": "b"})

    assert response.status_code == 500
    assert "userId" in response.json()["error"]
    assert providers[Channel.EMAIL].calls == []


def test_invalid_telegram_chat_id(client, providers, ledger):
    response = client.post(
        "/api/communication/telegram", json={"chatId": "abc", "message": "hi", "userId": "u"}
    )
    assert response.status_code == 500
    assert response.json()["error"] == "Chat ID must be numeric"
    assert providers[Channel.TELEGRAM].calls == []
    assert ledger.events == []


def test_non_ascii_chat_id_never_reaches_provider(client, providers):
    response = client.post(
        "/api/communication/telegram", json={"chatId": "١٢٣", "message": "hi", "userId": "u"}
    )
    assert response.status_code == 500
    assert providers[Channel.TELEGRAM].calls == []


def test_unified_invalid_channel(client):
    response = client.post("/api/communication/send", json={"channel": "invalid", "userId": "u3"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Invalid channel. Must be one of: email, whatsapp, telegram, sms",
    }


def test_unified_echoes_channel(client, ledger):
    response = client.post(
        "/api/communication/send",
        json={
            "channel": "sms",
            "to": "+1234567890",
            "message": "hi",
            "userId": "u",
            "messageType": "Urgent Update",
        },
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "channel": "sms", "messageId": "SM-1"}
    assert ledger.events[0].points == 4
    assert ledger.events[0].channel_type == "general"


def test_provider_failure_with_failing_ledger(providers):
    providers[Channel.WHATSAPP].error = ProviderRejected("WhatsApp message sending failed: HTTP 401")
    ledger = FakeLedger(error=LedgerUnreachable("down"))
    orchestrator = GatewayOrchestrator(ChannelDispatcher(providers), RewardPublisher(ledger))
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        response = TestClient(app).post(
            "/api/communication/whatsapp",
            json={"to": "+1234567890", "message": "hi", "userId": "u4"},
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "WhatsApp message sending failed: HTTP 401"}
    assert len(ledger.events) == 1
    assert ledger.events[0].points == -1


def test_non_object_body_rejected(client):
    response = client.post("/api/communication/sms", json=["not", "an", "object"])
    assert response.status_code == 500
    assert response.json()["success"] is False


def test_karma_balance_and_ledger(client):
    response = client.get("/api/karma/u1")
    assert response.status_code == 200
    assert response.json() == {"userId": "u1", "balance": 7}

    response = client.get("/api/karma/u1/ledger", params={"limit": 5})
    assert response.status_code == 200
    assert response.json()["limit"] == 5


def test_karma_ledger_error_is_502(orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_ledger_client] = lambda: FakeLedger(error=LedgerUnreachable("down"))
    try:
        response = TestClient(app).get("/api/karma/u1")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 502
    assert response.json() == {"success": False, "error": "down"}


@pytest.fixture
def crashing_client():
    crash_app = FastAPI()
    crash_app.add_middleware(LoggingMiddleware)
    crash_app.add_exception_handler(Exception, global_exception_handler)

    @crash_app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return TestClient(crash_app, raise_server_exceptions=False)


def test_unhandled_error_body_carries_request_id(crashing_client):
    response = crashing_client.get("/boom", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "error": "Internal server error",
        "detail": "kaboom",
        "requestId": "req-123",
    }
    assert response.headers["X-Request-ID"] == "req-123"


def test_unhandled_error_generates_request_id(crashing_client):
    response = crashing_client.get("/boom")

    assert response.status_code == 500
    assert response.json()["requestId"] == response.headers["X-Request-ID"]
    assert len(response.json()["requestId"]) == 16
