"""Worker routes relaying chatbot messages to Messenger.

Security:
- Recipient ids and message text are NEVER logged
- Only hashes, lengths and error types reach the logs
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel, Field

from chatrelay.api.task_auth import verify_task_auth
from chatrelay.facebook.graph_client import GraphApiClient
from chatrelay.messenger import dispatcher, sender_actions
from chatrelay.messenger.client import (
    MessageSendError,
    PlatformClient,
    PresenceSignalError,
)
from chatrelay.messenger.models import OutboundMessage, Recipient
from chatrelay.observability.correlation import bind_correlation_id
from chatrelay.observability.logging import get_logger
from chatrelay.observability.redaction import hash_identifier, safe_log_context

router = APIRouter(prefix="/tasks/messenger", tags=["tasks"])

logger = get_logger(__name__)

# Built lazily from env so the app can start without Messenger config
_client: PlatformClient | None = None


def _get_client() -> PlatformClient:
    """Get the shared platform client (allows test injection)."""
    global _client
    if _client is None:
        _client = GraphApiClient()
    return _client


def _set_client(client: PlatformClient | None) -> None:
    global _client
    _client = client


class RecipientPayload(BaseModel):
    id: str | None = None


class MessagePayload(BaseModel):
    """Chatbot message as produced upstream."""

    text: str | None = None
    attachment: dict[str, Any] | None = None
    recipient: RecipientPayload | None = None
    required_user_fields: list[str] = Field(default_factory=list)


class SendMessageRequest(BaseModel):
    recipient: RecipientPayload
    message: MessagePayload
    correlation_id: str | None = None


class MarkSeenRequest(BaseModel):
    recipient: RecipientPayload
    correlation_id: str | None = None


def _authorize(request: Request, log_ctx: dict[str, str]) -> None:
    if not verify_task_auth(request):
        logger.warning("task auth failed", extra={"extra_fields": log_ctx})
        raise HTTPException(status_code=401, detail="Unauthorized")


def _resolve_client(log_ctx: dict[str, str]) -> PlatformClient:
    try:
        return _get_client()
    except RuntimeError:
        logger.exception("messenger client unavailable", extra={"extra_fields": log_ctx})
        raise HTTPException(status_code=503, detail="messenger_not_configured")


@router.post("/send-message")
async def send_message(request: Request, req: SendMessageRequest) -> Any:
    """Relay one chatbot message with a typing indicator.

    Returns:
        200 {"ok": true} on success.
        422 if the message has no text and no attachment.
        502 "presence_failed" / "send_failed" on platform errors.
    """
    with bind_correlation_id(req.correlation_id) as correlation_id:
        recipient = Recipient.from_dict(req.recipient.model_dump())
        message = OutboundMessage.from_dict(req.message.model_dump())

        log_ctx = safe_log_context(
            correlationId=correlation_id,
            recipient_hash=hash_identifier(recipient.id or ""),
            text_len=len(message.text or ""),
            has_attachment=message.attachment is not None,
            field_count=len(message.required_user_fields),
        )

        _authorize(request, log_ctx)
        logger.info("send-message task received", extra={"extra_fields": log_ctx})

        client = _resolve_client(log_ctx)

        try:
            await dispatcher.send_message(client, recipient, message)
        except ValueError as e:
            logger.warning(
                "send-message rejected",
                extra={"extra_fields": safe_log_context(**log_ctx, error=str(e))},
            )
            raise HTTPException(status_code=422, detail=str(e))
        except PresenceSignalError:
            logger.exception("send-message presence failed", extra={"extra_fields": log_ctx})
            return Response(status_code=502, content="presence_failed")
        except MessageSendError:
            logger.exception("send-message task failed", extra={"extra_fields": log_ctx})
            return Response(status_code=502, content="send_failed")

        return {"ok": True}


@router.post("/mark-seen")
async def mark_seen(request: Request, req: MarkSeenRequest) -> Any:
    """Mark the recipient's conversation as seen."""
    with bind_correlation_id(req.correlation_id) as correlation_id:
        recipient = Recipient.from_dict(req.recipient.model_dump())
        log_ctx = safe_log_context(
            correlationId=correlation_id,
            recipient_hash=hash_identifier(recipient.id or ""),
        )

        _authorize(request, log_ctx)
        client = _resolve_client(log_ctx)

        try:
            await sender_actions.mark_seen(client, recipient)
        except PresenceSignalError:
            logger.exception("mark-seen task failed", extra={"extra_fields": log_ctx})
            return Response(status_code=502, content="presence_failed")

        return {"ok": True}
