"""FastAPI entry point. Wires validation -> authorization -> fraud scoring ->
audit -> persistence for chat messages. Exposes GET / (health),
POST /api/messaging/fraud-detection (score only) and POST /api/messaging/send."""

import logging

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from safetrade import config
from safetrade.audit import FraudAuditLog
from safetrade.auth import verify_api_key
from safetrade.detector import FraudDetector, downgrade_for_development, fraud_detector
from safetrade.messaging import MessageService, MissingFields, NotParticipant
from safetrade.models import (
    BlockedFraudSummary,
    BlockedMessageResponse,
    FraudCheckRequest,
    FraudCheckResponse,
    FraudScore,
    SendFraudSummary,
    SendMessageRequest,
    SendMessageResponse,
    StoredMessage,
)
from safetrade.scoring_client import build_scorer
from safetrade.store import ConversationNotFound, store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=config.SERVICE_NAME,
    description="Marketplace chat with fraud-risk scoring on every message",
    version=config.SERVICE_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

audit_log = FraudAuditLog(config.FRAUD_LOG_FILE)
message_service = MessageService(store, build_scorer(), audit_log)


def get_detector() -> FraudDetector:
    return fraud_detector


def get_audit_log() -> FraudAuditLog:
    return audit_log


def get_message_service() -> MessageService:
    return message_service


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.on_event("startup")
async def _on_startup() -> None:
    logger.info(
        f"{config.SERVICE_NAME} v{config.SERVICE_VERSION} started | "
        f"env={config.APP_ENV} ruleset={fraud_detector.ruleset.name}"
    )


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.error(f"422 VALIDATION ERROR | {request.url.path} | {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "message": "Invalid request payload."},
    )


@app.get("/")
async def health_check(detector: FraudDetector = Depends(get_detector)) -> dict:
    return {
        "status": "online",
        "service": config.SERVICE_NAME,
        "version": config.SERVICE_VERSION,
        "ruleset": detector.ruleset.name,
    }


@app.post("/api/messaging/fraud-detection", response_model=FraudCheckResponse)
async def check_message(
    request: FraudCheckRequest,
    api_key: str = Depends(verify_api_key),
    detector: FraudDetector = Depends(get_detector),
    audit: FraudAuditLog = Depends(get_audit_log),
):
    """Score a message without sending it."""
    if not request.content or not request.senderId or not request.conversationId:
        return _error(400, "Missing required fields")

    try:
        assessment = detector.assess(request.content)
    except Exception as exc:
        logger.error(f"[{request.conversationId[:8]}] Fraud detection error: {exc}", exc_info=True)
        return _error(500, "Fraud detection service unavailable")

    # The send pipeline audits and enforces this result itself
    if request.callerEnforces:
        return FraudCheckResponse(success=True, fraudScore=FraudScore(**assessment.to_dict()))

    audit.record(request.senderId, request.conversationId, request.content, assessment)

    if config.is_development():
        assessment = downgrade_for_development(assessment)

    return FraudCheckResponse(success=True, fraudScore=FraudScore(**assessment.to_dict()))


@app.post("/api/messaging/send")
def send_message(
    request: SendMessageRequest,
    api_key: str = Depends(verify_api_key),
    service: MessageService = Depends(get_message_service),
) -> JSONResponse:
    """Score a message and deliver it unless it is blocked.

    Plain ``def`` so FastAPI runs it in the thread pool: remote scoring
    makes a blocking HTTP call.
    """
    conversation_id = request.conversationId
    try:
        result = service.send(
            conversation_id,
            request.senderId,
            request.content,
            message_type=request.messageType,
        )
    except MissingFields:
        return _error(400, "Missing required fields")
    except ConversationNotFound:
        return _error(404, "Conversation not found")
    except NotParticipant as exc:
        logger.warning(f"[{conversation_id[:8]}] Sender {request.senderId} not a participant")
        return _error(403, str(exc))
    except Exception as exc:
        logger.error(f"[{conversation_id[:8]}] Error sending message: {exc}", exc_info=True)
        return _error(500, "Failed to send message")

    assessment = result.assessment

    if result.blocked:
        body = BlockedMessageResponse(
            fraudScore=BlockedFraudSummary(
                riskLevel=assessment.level.value,
                score=assessment.score,
                reasons=list(assessment.reasons),
            )
        )
        return JSONResponse(status_code=400, content=body.model_dump())

    body = SendMessageResponse(
        success=True,
        message=StoredMessage(**result.message),
        fraudScore=SendFraudSummary(
            riskLevel=assessment.level.value,
            score=assessment.score,
            flags=list(assessment.flags) or None,
            warning=result.warning,
        ),
    )
    return JSONResponse(status_code=200, content=body.model_dump(exclude_none=True))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
