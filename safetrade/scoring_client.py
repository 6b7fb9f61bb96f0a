"""Message scorers used by the send pipeline.

Two interchangeable scorers share one call signature:

    LocalScorer          — runs the in-process FraudDetector
    RemoteScoringClient  — POSTs to a fraud-detection service over HTTP

Both fail open: any scoring failure yields a low-risk, non-blocking
assessment whose only reason is "Fraud detection unavailable". A scoring
outage must degrade to "allow with no fraud metadata", never to blocking
every message.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from safetrade import config
from safetrade.detector import (
    FraudDetector,
    RiskAssessment,
    RiskLevel,
    fraud_detector,
    unavailable_assessment,
)

logger = logging.getLogger(__name__)


class LocalScorer:
    """Scores with the in-process engine."""

    def __init__(self, detector: FraudDetector = fraud_detector) -> None:
        self.detector = detector

    def __call__(
        self,
        content: str,
        sender_id: str,
        conversation_id: str,
        participant_ids: Optional[List[str]] = None,
    ) -> RiskAssessment:
        try:
            return self.detector.assess(content)
        except Exception as exc:
            logger.error(f"[{conversation_id[:8]}] Fraud scoring failed, allowing message: {exc}")
            return unavailable_assessment()


class RemoteScoringClient:
    """Scores by calling a fraud-detection endpoint.

    Expects the endpoint to answer with ``{"fraudScore": {...}}`` in the
    same shape ``RiskAssessment.to_dict()`` produces.
    """

    def __init__(self, url: str, timeout: float = 5.0, api_key: Optional[str] = None) -> None:
        self.url = url
        self.timeout = timeout
        self.api_key = api_key if api_key is not None else config.API_KEY

    def __call__(
        self,
        content: str,
        sender_id: str,
        conversation_id: str,
        participant_ids: Optional[List[str]] = None,
    ) -> RiskAssessment:
        short_id = conversation_id[:8]
        payload = {
            "content": content,
            "senderId": sender_id,
            "conversationId": conversation_id,
            "participantIds": participant_ids or [],
            # This pipeline audits and enforces the block itself
            "callerEnforces": True,
        }

        try:
            response = requests.post(
                self.url,
                json=payload,
                timeout=self.timeout,
                headers={"Content-Type": "application/json", "x-api-key": self.api_key},
            )
        except requests.exceptions.Timeout:
            logger.error(f"[{short_id}] Fraud service timed out after {self.timeout}s")
            return unavailable_assessment()
        except requests.exceptions.RequestException as exc:
            logger.error(f"[{short_id}] Fraud service network error: {exc}")
            return unavailable_assessment()

        if response.status_code != 200:
            logger.error(
                f"[{short_id}] Fraud service rejected request: "
                f"{response.status_code} {response.text[:200]}"
            )
            return unavailable_assessment()

        try:
            return parse_fraud_score(response.json()["fraudScore"])
        except (ValueError, KeyError, TypeError) as exc:
            logger.error(f"[{short_id}] Fraud service returned unusable payload: {exc}")
            return unavailable_assessment()


def parse_fraud_score(data: Dict[str, Any]) -> RiskAssessment:
    """Rebuild a RiskAssessment from its wire form. Raises on bad input."""
    score = int(data["score"])
    if not 0 <= score <= 100:
        raise ValueError(f"score out of range: {score}")
    return RiskAssessment(
        score=score,
        level=RiskLevel(data["riskLevel"]),
        flags=tuple(str(flag) for flag in data.get("flags") or ()),
        reasons=tuple(str(reason) for reason in data.get("reasons") or ()),
        blocked=bool(data["blocked"]),
        raw_score=score,
    )


def build_scorer():
    """Pick the remote client when FRAUD_SERVICE_URL is set, else score locally."""
    if config.FRAUD_SERVICE_URL:
        logger.info(f"Using remote fraud scoring at {config.FRAUD_SERVICE_URL}")
        return RemoteScoringClient(
            config.FRAUD_SERVICE_URL,
            config.FRAUD_SERVICE_TIMEOUT,
            api_key=config.API_KEY,
        )
    return LocalScorer()
