"""Fraud-attempt audit trail. Records high and critical assessments to the
app log and, when FRAUD_LOG_FILE is set, to a bounded JSON history file."""

import hashlib
import json
import logging
import os
import threading
from datetime import datetime, timezone
from typing import Optional

from safetrade.detector import RiskAssessment, RiskLevel

logger = logging.getLogger(__name__)

AUDITED_LEVELS = frozenset([RiskLevel.HIGH, RiskLevel.CRITICAL])
PREVIEW_LENGTH: int = 100
MAX_RECORDS: int = 1000


def should_audit(assessment: RiskAssessment) -> bool:
    return assessment.level in AUDITED_LEVELS


def hash_content(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def build_fraud_record(
    sender_id: str,
    conversation_id: str,
    content: str,
    assessment: RiskAssessment,
) -> dict:
    """Build the audit record. Only a preview of the content is kept."""
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "senderId": sender_id,
        "conversationId": conversation_id,
        "riskLevel": assessment.level.value,
        "score": assessment.score,
        "rawScore": assessment.raw_score,
        "blocked": assessment.blocked,
        "flags": list(assessment.flags),
        "reasons": list(assessment.reasons),
        "contentPreview": content[:PREVIEW_LENGTH] + "...",
        "contentHash": hash_content(content),
    }


class FraudAuditLog:
    """Writes fraud attempts to the logger and an optional JSON file."""

    def __init__(self, log_file: Optional[str] = None) -> None:
        self.log_file = log_file or None
        self._lock = threading.Lock()

    def record(
        self,
        sender_id: str,
        conversation_id: str,
        content: str,
        assessment: RiskAssessment,
    ) -> Optional[dict]:
        """Record the attempt if its level warrants it. Returns the record or None."""
        if not should_audit(assessment):
            return None

        record = build_fraud_record(sender_id, conversation_id, content, assessment)
        logger.warning(f"FRAUD ATTEMPT DETECTED: {json.dumps(record, default=str)}")

        if self.log_file:
            self._persist(record)
        return record

    def _persist(self, record: dict) -> None:
        try:
            with self._lock:
                records = []
                if os.path.exists(self.log_file):
                    try:
                        with open(self.log_file, "r", encoding="utf-8") as fh:
                            records = json.load(fh)
                    except (json.JSONDecodeError, ValueError):
                        records = []
                records.append(record)
                if len(records) > MAX_RECORDS:
                    records = records[-MAX_RECORDS:]
                with open(self.log_file, "w", encoding="utf-8") as fh:
                    json.dump(records, fh, indent=2, default=str)
        except Exception as exc:
            logger.warning(f"Failed to persist fraud audit record: {exc}")
