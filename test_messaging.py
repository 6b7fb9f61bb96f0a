"""Send pipeline: authorization, block/persist decisions and fail-open scoring."""

import pytest

from safetrade.audit import FraudAuditLog
from safetrade.detector import FraudDetector, RiskLevel, unavailable_assessment
from safetrade.messaging import MessageService, MissingFields, NotParticipant, risk_warning
from safetrade.scoring_client import LocalScorer
from safetrade.store import ConversationNotFound, MessageStore

BUYER = "buyer-1"
SELLER = "seller-1"


@pytest.fixture
def store() -> MessageStore:
    return MessageStore()


@pytest.fixture
def conversation(store: MessageStore) -> dict:
    return store.create_conversation(BUYER, SELLER, listing_id="listing-1")


@pytest.fixture
def service(store: MessageStore) -> MessageService:
    return MessageService(store, LocalScorer(FraudDetector()), FraudAuditLog())


def test_clean_message_is_stored(service: MessageService, store: MessageStore, conversation: dict) -> None:
    result = service.send(conversation["id"], BUYER, "  Is the bike still available?  ")

    assert result.blocked is False
    assert result.warning is None
    assert result.message["content"] == "Is the bike still available?"
    assert result.message["fraud_score"] == 0
    assert result.message["fraud_flags"] == []
    assert store.get_messages(conversation["id"]) == [result.message]

    updated = store.get_conversation(conversation["id"])
    assert updated["last_message_preview"] == "Is the bike still available?"
    assert updated["fraud_alerts_count"] == 0


def test_flagged_message_is_stored_with_warning(service: MessageService, store: MessageStore, conversation: dict) -> None:
    result = service.send(conversation["id"], SELLER, "Send via PayPal please")

    assert result.blocked is False
    assert result.assessment.level == RiskLevel.MEDIUM
    assert result.warning == "This message was flagged as medium risk"
    assert result.message["fraud_score"] == 25
    assert result.message["fraud_flags"] == ["PAYMENT_SCAM"]
    assert store.get_conversation(conversation["id"])["fraud_alerts_count"] == 1


def test_blocked_message_is_not_stored(service: MessageService, store: MessageStore, conversation: dict) -> None:
    result = service.send(conversation["id"], SELLER, "This is not a scam, send bitcoin payment")

    assert result.blocked is True
    assert result.message is None
    assert result.assessment.level == RiskLevel.CRITICAL
    assert store.get_messages(conversation["id"]) == []
    assert store.get_conversation(conversation["id"])["last_message_preview"] is None


@pytest.mark.parametrize(
    "conversation_id, sender_id, content",
    [("", BUYER, "hi"), ("conv", "", "hi"), ("conv", BUYER, ""), ("conv", BUYER, "   ")],
)
def test_missing_fields(service: MessageService, conversation_id: str, sender_id: str, content: str) -> None:
    with pytest.raises(MissingFields):
        service.send(conversation_id, sender_id, content)


def test_unknown_conversation(service: MessageService) -> None:
    with pytest.raises(ConversationNotFound):
        service.send("conv-missing", BUYER, "hello")


def test_outsider_cannot_send(service: MessageService, store: MessageStore, conversation: dict) -> None:
    with pytest.raises(NotParticipant):
        service.send(conversation["id"], "stranger-9", "hello")
    assert store.get_messages(conversation["id"]) == []


def test_scorer_receives_participants(store: MessageStore, conversation: dict) -> None:
    seen = []

    def scorer(content, sender_id, conversation_id, participant_ids=None):
        seen.append((sender_id, conversation_id, participant_ids))
        return FraudDetector().assess(content)

    MessageService(store, scorer, FraudAuditLog()).send(conversation["id"], BUYER, "hello")
    assert seen == [(BUYER, conversation["id"], [BUYER, SELLER])]


def test_scoring_outage_allows_message(store: MessageStore, conversation: dict) -> None:
    service = MessageService(store, lambda *args: unavailable_assessment(), FraudAuditLog())
    result = service.send(conversation["id"], BUYER, "Wire transfer via Western Union")

    assert result.blocked is False
    assert result.warning is None
    assert result.message["fraud_score"] == 0
    assert result.message["fraud_flags"] == []


def test_preview_is_truncated(service: MessageService, store: MessageStore, conversation: dict) -> None:
    long_text = "Lovely bike, " * 20
    service.send(conversation["id"], BUYER, long_text)
    preview = store.get_conversation(conversation["id"])["last_message_preview"]
    assert preview == long_text.strip()[:100]


def test_risk_warning_levels() -> None:
    detector = FraudDetector()
    assert risk_warning(detector.assess("hello")) is None
    assert risk_warning(detector.assess("Send money via Western Union and I will ship via courier")) == (
        "This message was flagged as high risk"
    )
