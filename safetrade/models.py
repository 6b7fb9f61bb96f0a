"""
models.py — Pydantic Request/Response Schemas
===============================================

Data models for the messaging API's HTTP interface.

Request flow:
    Client → FraudCheckRequest (POST /api/messaging/fraud-detection) → FraudCheckResponse
    Client → SendMessageRequest (POST /api/messaging/send) → SendMessageResponse
                                                            | BlockedMessageResponse

Design decisions:
    - Request models use ConfigDict(extra="ignore") so older clients sending
      extra fields keep working.
    - Required text fields default to "" and are checked by the endpoint, so
      a missing field answers 400 "Missing required fields" rather than a
      422 validation error.
    - JSON field names are camelCase, matching the web client.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


# ═══════════════════════════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════════════════════════

class FraudCheckRequest(BaseModel):
    """Body of POST /api/messaging/fraud-detection."""
    model_config = ConfigDict(extra="ignore")

    content: str = Field(default="")
    senderId: str = Field(default="")
    conversationId: str = Field(default="")
    participantIds: List[str] = Field(default_factory=list)
    # Set by a send pipeline that audits and enforces the result itself
    callerEnforces: bool = Field(default=False)


class SendMessageRequest(BaseModel):
    """Body of POST /api/messaging/send."""
    model_config = ConfigDict(extra="ignore")

    conversationId: str = Field(default="")
    senderId: str = Field(default="")
    content: str = Field(default="")
    messageType: str = Field(default="text")   # text | system | alert


# ═══════════════════════════════════════════════════════════════════════
# RESPONSE MODELS
# ═══════════════════════════════════════════════════════════════════════

class FraudScore(BaseModel):
    """Full assessment as returned by the fraud-detection endpoint."""
    riskLevel: str
    score: int = Field(..., ge=0, le=100)
    blocked: bool
    flags: List[str] = Field(default_factory=list)
    reasons: List[str] = Field(default_factory=list)


class FraudCheckResponse(BaseModel):
    success: bool = True
    fraudScore: FraudScore


class SendFraudSummary(BaseModel):
    """Advisory fraud info attached to a delivered message.

    ``flags`` and ``warning`` are left out of the JSON when empty.
    """
    riskLevel: str
    score: int = Field(..., ge=0, le=100)
    flags: Optional[List[str]] = None
    warning: Optional[str] = None


class StoredMessage(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    content: str
    message_type: str = "text"
    is_read: bool = False
    status: str = "sent"
    fraud_score: int = 0
    fraud_flags: List[str] = Field(default_factory=list)
    created_at: str


class SendMessageResponse(BaseModel):
    success: bool = True
    message: StoredMessage
    fraudScore: SendFraudSummary


class BlockedFraudSummary(BaseModel):
    riskLevel: str
    score: int = Field(..., ge=0, le=100)
    reasons: List[str] = Field(default_factory=list)


class BlockedMessageResponse(BaseModel):
    """Returned with HTTP 400 when a message is refused."""
    success: bool = False
    blocked: bool = True
    error: str = "Message blocked for security reasons"
    fraudScore: BlockedFraudSummary
