"""Presence indicators ("sender actions") for Messenger conversations."""

from asyncio import sleep
from typing import Any

from chatrelay.messenger.client import PlatformClient, PresenceSignalError
from chatrelay.messenger.delay import estimate_delay
from chatrelay.messenger.models import OutboundMessage, Recipient
from chatrelay.observability.logging import get_logger
from chatrelay.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

MARK_SEEN = "mark_seen"
TYPING_ON = "typing_on"
TYPING_OFF = "typing_off"


def build_sender_action(recipient: Recipient, action: str) -> dict[str, Any]:
    return {"recipient": recipient.to_dict(), "sender_action": action}


async def _send_sender_action(
    client: PlatformClient, recipient: Recipient, action: str
) -> None:
    """Deliver one sender action. Raises PresenceSignalError on failure."""
    try:
        await client.send_message(build_sender_action(recipient, action))
    except Exception as e:
        logger.error(
            "sender action failed",
            extra={
                "extra_fields": safe_log_context(
                    action=action,
                    recipient_hash=hash_identifier(recipient.id or ""),
                    error_type=type(e).__name__,
                )
            },
        )
        raise PresenceSignalError(f"{action} failed") from e


async def mark_seen(client: PlatformClient, recipient: Recipient) -> None:
    """Mark the conversation's last message as seen."""
    await _send_sender_action(client, recipient, MARK_SEEN)


async def typing_on(client: PlatformClient, recipient: Recipient) -> None:
    await _send_sender_action(client, recipient, TYPING_ON)


async def typing_off(client: PlatformClient, recipient: Recipient) -> None:
    await _send_sender_action(client, recipient, TYPING_OFF)


async def send_typing_on(
    client: PlatformClient,
    recipient: Recipient,
    message: OutboundMessage,
) -> None:
    """Show the typing indicator, then wait as long as typing would take.

    The delay is estimated from the message text, or from the attachment's
    ``payload.text`` when there is no text. If the indicator cannot be
    sent, PresenceSignalError propagates and no waiting happens.
    """
    await typing_on(client, recipient)

    delay_ms = estimate_delay(message.typing_text())
    logger.debug(
        "typing indicator sent, waiting",
        extra={"extra_fields": safe_log_context(delay_ms=round(delay_ms, 2))},
    )
    await sleep(delay_ms / 1000)
