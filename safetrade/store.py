"""Thread-safe in-memory conversation and message store.

Stands in for the marketplace database behind the send pipeline. Tracks
conversations (buyer, seller, listing), their messages with fraud
metadata, the last-message preview and a count of fraud alerts.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional


PREVIEW_LENGTH: int = 100


class ConversationNotFound(LookupError):
    """Raised for an unknown conversation id."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MessageStore:
    """Conversations keyed by id, each with an ordered message list."""

    def __init__(self) -> None:
        self._conversations: Dict[str, dict] = {}
        self._messages: Dict[str, List[dict]] = {}
        self._lock = threading.Lock()

    # ==================== Conversations ====================

    def create_conversation(
        self,
        buyer_id: str,
        seller_id: str,
        listing_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
    ) -> dict:
        conversation_id = conversation_id or str(uuid.uuid4())
        now = _now()
        conversation = {
            "id": conversation_id,
            "buyer_id": buyer_id,
            "seller_id": seller_id,
            "listing_id": listing_id,
            "created_at": now,
            "updated_at": now,
            "last_message_preview": None,
            "fraud_alerts_count": 0,
        }
        with self._lock:
            self._conversations[conversation_id] = conversation
            self._messages[conversation_id] = []
        return dict(conversation)

    def get_conversation(self, conversation_id: str) -> Optional[dict]:
        """Return a copy of the conversation, or None if unknown."""
        with self._lock:
            conversation = self._conversations.get(conversation_id)
            return dict(conversation) if conversation else None

    def touch_conversation(self, conversation_id: str, preview: str) -> None:
        """Bump updated_at and store the last-message preview."""
        with self._lock:
            conversation = self._require(conversation_id)
            conversation["updated_at"] = _now()
            conversation["last_message_preview"] = preview[:PREVIEW_LENGTH]

    def record_fraud_alert(self, conversation_id: str) -> int:
        with self._lock:
            conversation = self._require(conversation_id)
            conversation["fraud_alerts_count"] += 1
            return conversation["fraud_alerts_count"]

    # ==================== Messages ====================

    def add_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: str = "text",
        fraud_score: int = 0,
        fraud_flags: Optional[List[str]] = None,
    ) -> dict:
        """Append a message and return a copy of the stored record."""
        message = {
            "id": str(uuid.uuid4()),
            "conversation_id": conversation_id,
            "sender_id": sender_id,
            "content": content,
            "message_type": message_type,
            "is_read": False,
            "status": "sent",
            "fraud_score": fraud_score,
            "fraud_flags": list(fraud_flags or []),
            "created_at": _now(),
        }
        with self._lock:
            self._require(conversation_id)
            self._messages[conversation_id].append(message)
        return dict(message)

    def get_messages(self, conversation_id: str) -> List[dict]:
        with self._lock:
            self._require(conversation_id)
            return [dict(m) for m in self._messages[conversation_id]]

    def _require(self, conversation_id: str) -> dict:
        """Caller must hold the lock."""
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)
        return conversation


# Module-level singleton
store = MessageStore()
