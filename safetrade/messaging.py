"""
messaging.py — Message Send Pipeline
=====================================

Runs one outgoing chat message through:

    1. Field validation       — conversation, sender and content required
    2. Authorization          — sender must be the buyer or the seller
    3. Fraud scoring          — local engine or remote service, fail-open
    4. Audit                  — high/critical assessments are recorded
    5. Block or persist       — blocked messages are never stored; allowed
                                ones carry fraud_score and fraud_flags
    6. Conversation update    — preview, timestamp and fraud alert count

A blocked message is a normal outcome (SendResult.blocked), not an error.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from safetrade.audit import FraudAuditLog
from safetrade.detector import RiskAssessment, RiskLevel
from safetrade.store import ConversationNotFound, MessageStore

logger = logging.getLogger(__name__)

Scorer = Callable[[str, str, str, Optional[List[str]]], RiskAssessment]


class MessagingError(Exception):
    """Base class for send-pipeline rejections."""


class MissingFields(MessagingError):
    pass


class NotParticipant(MessagingError):
    pass


@dataclass(frozen=True)
class SendResult:
    assessment: RiskAssessment
    message: Optional[dict] = None
    warning: Optional[str] = None

    @property
    def blocked(self) -> bool:
        return self.assessment.blocked


def risk_warning(assessment: RiskAssessment) -> Optional[str]:
    """Advisory text shown with any message that isn't low risk."""
    if assessment.level is RiskLevel.LOW:
        return None
    return f"This message was flagged as {assessment.level.value} risk"


class MessageService:
    def __init__(self, store: MessageStore, scorer: Scorer, audit: FraudAuditLog) -> None:
        self.store = store
        self.scorer = scorer
        self.audit = audit

    def send(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: str = "text",
    ) -> SendResult:
        """Score and, unless blocked, store one message.

        Raises:
            MissingFields:        a required field is empty.
            ConversationNotFound: the conversation does not exist.
            NotParticipant:       the sender is not part of the conversation.
        """
        if not conversation_id or not sender_id or not content or not content.strip():
            raise MissingFields("Missing required fields")

        short_id = conversation_id[:8]
        conversation = self.store.get_conversation(conversation_id)
        if conversation is None:
            raise ConversationNotFound(conversation_id)

        participant_ids = [conversation["buyer_id"], conversation["seller_id"]]
        if sender_id not in participant_ids:
            raise NotParticipant("Unauthorized: Not a participant in this conversation")

        assessment = self.scorer(content, sender_id, conversation_id, participant_ids)
        self.audit.record(sender_id, conversation_id, content, assessment)

        if assessment.blocked:
            logger.info(
                f"[{short_id}] BLOCKED  level={assessment.level.value}  "
                f"score={assessment.score}  flags={list(assessment.flags)}"
            )
            return SendResult(assessment=assessment)

        body = content.strip()
        message = self.store.add_message(
            conversation_id,
            sender_id,
            body,
            message_type=message_type,
            fraud_score=assessment.score,
            fraud_flags=list(assessment.flags),
        )
        self.store.touch_conversation(conversation_id, body)
        if assessment.level is not RiskLevel.LOW:
            self.store.record_fraud_alert(conversation_id)

        logger.info(
            f"[{short_id}] SENT  level={assessment.level.value}  "
            f"score={assessment.score}  msg_len={len(body)}"
        )
        return SendResult(
            assessment=assessment,
            message=message,
            warning=risk_warning(assessment),
        )
