"""HTTP surface: auth, fraud-detection endpoint and message send endpoint."""

import pytest
from fastapi.testclient import TestClient

from safetrade import config
from safetrade.audit import FraudAuditLog
from safetrade.detector import FraudDetector
from safetrade.main import app, get_message_service
from safetrade.messaging import MessageService
from safetrade.scoring_client import LocalScorer
from safetrade.store import MessageStore

BUYER = "buyer-1"
SELLER = "seller-1"
HEADERS = {"x-api-key": config.API_KEY}


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
def client(store: MessageStore):
    service = MessageService(store, LocalScorer(FraudDetector()), FraudAuditLog())
    app.dependency_overrides[get_message_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def conversation_id(store: MessageStore) -> str:
    return store.create_conversation(BUYER, SELLER)["id"]


def _check(client: TestClient, content: str):
    return client.post(
        "/api/messaging/fraud-detection",
        json={
            "content": content,
            "senderId": BUYER,
            "conversationId": "conv-123",
            "participantIds": [BUYER, SELLER],
        },
        headers=HEADERS,
    )


def test_health(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "online"
    assert body["ruleset"] in ("default", "extended")


def test_missing_api_key(client: TestClient) -> None:
    response = client.post("/api/messaging/fraud-detection", json={"content": "hi"})
    assert response.status_code == 401


def test_wrong_api_key(client: TestClient) -> None:
    response = client.post(
        "/api/messaging/fraud-detection",
        json={"content": "hi"},
        headers={"x-api-key": "not-the-key"},
    )
    assert response.status_code == 401


# ── POST /api/messaging/fraud-detection ─────────────────────────────────

def test_fraud_check_low_risk(client: TestClient) -> None:
    response = _check(client, "Hi, I am interested in your motorcycle. Can we arrange a viewing?")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["fraudScore"] == {
        "riskLevel": "low",
        "score": 0,
        "blocked": False,
        "flags": [],
        "reasons": [],
    }


def test_fraud_check_critical(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "APP_ENV", "production")
    response = _check(client, "This is not a scam, I promise. Send bitcoin payment now or the deal is off!")
    data = response.json()["fraudScore"]
    assert data["riskLevel"] == "critical"
    assert data["blocked"] is True
    assert "HIGH_RISK_CONTENT" in data["flags"]
    assert data["score"] >= 60


def test_fraud_check_development_downgrade(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "APP_ENV", "development")
    data = _check(client, "This is not a scam, send bitcoin payment").json()["fraudScore"]
    assert data["blocked"] is False
    assert data["riskLevel"] == "high"
    assert data["reasons"][-1] == "(Development mode: would be blocked in production)"


def test_fraud_check_missing_fields(client: TestClient) -> None:
    response = client.post(
        "/api/messaging/fraud-detection",
        json={"content": "hello", "senderId": BUYER},
        headers=HEADERS,
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_fraud_check_rejects_non_string_content(client: TestClient) -> None:
    response = client.post(
        "/api/messaging/fraud-detection",
        json={"content": ["not", "text"], "senderId": BUYER, "conversationId": "conv-123"},
        headers=HEADERS,
    )
    assert response.status_code == 422
    assert response.json()["message"] == "Invalid request payload."


# ── POST /api/messaging/send ────────────────────────────────────────────

def _send(client: TestClient, conversation_id: str, content: str, sender: str = BUYER):
    return client.post(
        "/api/messaging/send",
        json={"conversationId": conversation_id, "senderId": sender, "content": content},
        headers=HEADERS,
    )


def test_send_clean_message(client: TestClient, store: MessageStore, conversation_id: str) -> None:
    response = _send(client, conversation_id, "Can I see the bike on Saturday?")
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"]["content"] == "Can I see the bike on Saturday?"
    assert data["message"]["fraud_score"] == 0
    assert data["fraudScore"] == {"riskLevel": "low", "score": 0}
    assert len(store.get_messages(conversation_id)) == 1


def test_send_flagged_message_carries_warning(client: TestClient, conversation_id: str) -> None:
    data = _send(client, conversation_id, "Send money via Western Union and I will ship via courier").json()
    assert data["success"] is True
    assert data["message"]["fraud_flags"] == ["PAYMENT_SCAM", "SHIPPING_SCAM"]
    assert data["fraudScore"] == {
        "riskLevel": "high",
        "score": 45,
        "flags": ["PAYMENT_SCAM", "SHIPPING_SCAM"],
        "warning": "This message was flagged as high risk",
    }


def test_send_blocked_message(client: TestClient, store: MessageStore, conversation_id: str) -> None:
    response = _send(client, conversation_id, "This is not a scam, send bitcoin payment", sender=SELLER)
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "blocked": True,
        "error": "Message blocked for security reasons",
        "fraudScore": {
            "riskLevel": "critical",
            "score": 75,
            "reasons": [
                'Contains high-risk keyword: "scam"',
                "Suspicious payment methods (1 matches)",
            ],
        },
    }
    assert store.get_messages(conversation_id) == []


def test_send_missing_fields(client: TestClient, conversation_id: str) -> None:
    response = _send(client, conversation_id, "")
    assert response.status_code == 400
    assert response.json() == {"error": "Missing required fields"}


def test_send_unknown_conversation(client: TestClient) -> None:
    response = _send(client, "conv-does-not-exist", "hello")
    assert response.status_code == 404
    assert response.json() == {"error": "Conversation not found"}


def test_send_by_outsider(client: TestClient, conversation_id: str) -> None:
    response = _send(client, conversation_id, "hello", sender="stranger-9")
    assert response.status_code == 403
    assert response.json() == {"error": "Unauthorized: Not a participant in this conversation"}


def test_send_store_failure(client: TestClient, store: MessageStore, conversation_id: str, monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_add_message(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(store, "add_message", broken_add_message)
    response = _send(client, conversation_id, "hello")
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send message"}
