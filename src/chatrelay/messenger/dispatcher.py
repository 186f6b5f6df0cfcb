"""Outbound message pipeline.

One call relays one message, strictly in order:

1. resolve the text (personalize when the message asks for user fields)
2. show the typing indicator and wait out the typing delay
3. build the body (text or attachment, never both)
4. send it

A failed profile lookup in step 1 degrades to blank fields. A failed
typing indicator aborts the call before anything is sent. A failed send
is raised to the caller. Nothing is retried here.

Security: NEVER log recipient ids or text. Only log hashes and lengths.
"""

from typing import Any

from chatrelay.messenger import personalization, sender_actions
from chatrelay.messenger.client import MessageSendError, PlatformClient
from chatrelay.messenger.models import OutboundMessage, Recipient
from chatrelay.observability.logging import get_logger
from chatrelay.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)


def build_message_body(
    recipient: Recipient,
    text: str | None,
    attachment: dict[str, Any] | None,
) -> dict[str, Any]:
    """Build the Send API body. Text wins; the attachment is the fallback."""
    if text:
        message: dict[str, Any] = {"text": text}
    else:
        message = {"attachment": attachment}
    return {"recipient": recipient.to_dict(), "message": message}


async def resolve_text(
    client: PlatformClient,
    recipient: Recipient,
    message: OutboundMessage,
) -> str | None:
    """Return the text to send, personalized when fields are required."""
    if not message.required_user_fields or message.text is None:
        return message.text
    return await personalization.personalize(
        client,
        message.text,
        message.required_user_fields,
        message.recipient if message.recipient and message.recipient.id else recipient,
    )


async def send_message(
    client: PlatformClient,
    recipient: Recipient,
    message: OutboundMessage,
) -> None:
    """Relay ``message`` to ``recipient`` with a typing indicator first.

    Args:
        client: Platform client shared across calls.
        recipient: Who receives the message. NEVER logged.
        message: The chatbot message. Its text is NEVER logged.

    Raises:
        ValueError: If the message has neither text nor attachment, or
            needs personalization without a recipient id, or the text
            personalizes to nothing and there is no attachment.
        PresenceSignalError: If the typing indicator could not be sent.
        MessageSendError: If the message itself could not be sent.
    """
    message.validate()

    text = await resolve_text(client, recipient, message)
    if not text and message.attachment is None:
        raise ValueError("Personalized text is empty and there is no attachment")

    view = OutboundMessage(
        text=text,
        attachment=None if text else message.attachment,
        recipient=message.recipient,
    )
    await sender_actions.send_typing_on(client, recipient, view)

    body = build_message_body(recipient, text, message.attachment)

    log_ctx = safe_log_context(
        recipient_hash=hash_identifier(recipient.id or ""),
        kind="text" if text else "attachment",
        text_len=len(text or ""),
        personalized=bool(message.required_user_fields),
    )
    logger.info("sending outbound message", extra={"extra_fields": log_ctx})

    try:
        await client.send_message(body)
    except Exception as e:
        logger.error(
            "outbound send failed",
            extra={
                "extra_fields": safe_log_context(
                    **log_ctx, error_type=type(e).__name__
                )
            },
        )
        raise MessageSendError("message send failed") from e

    logger.info("outbound message sent", extra={"extra_fields": log_ctx})
