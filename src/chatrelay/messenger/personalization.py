"""Placeholder substitution with recipient profile fields.

Text like ``"Hi ##first_name##!"`` is resolved against the recipient's
profile. Only the fields a message declares in ``required_user_fields``
are substituted; other placeholders are left as they are.

A failed profile lookup never fails the send. The message goes out with
every requested field blanked instead.
"""

import re
from typing import Sequence

from chatrelay.messenger.client import PlatformClient
from chatrelay.messenger.models import Recipient
from chatrelay.observability.logging import get_logger
from chatrelay.observability.redaction import hash_identifier, safe_log_context

logger = get_logger(__name__)

PLACEHOLDER_DELIMITER = "##"


def fill_placeholders(
    text: str,
    required_fields: Sequence[str],
    user_info: dict[str, str],
) -> str:
    """Substitute each required field's placeholder in ``text``.

    Missing fields become the empty string. A blanked placeholder also
    takes one preceding space with it, so "Hi ##first_name##!" becomes
    "Hi!" rather than "Hi !".
    """
    if not required_fields:
        return text

    names = "|".join(re.escape(name) for name in required_fields)
    pattern = re.compile(
        f"( ?){re.escape(PLACEHOLDER_DELIMITER)}({names}){re.escape(PLACEHOLDER_DELIMITER)}"
    )

    def _substitute(match: re.Match) -> str:
        value = user_info.get(match.group(2))
        if not value:
            return ""
        return match.group(1) + str(value)

    # Single pass: substituted values are never rescanned
    return pattern.sub(_substitute, text)


async def _lookup_user_info(
    client: PlatformClient,
    recipient_id: str,
    required_fields: Sequence[str],
) -> dict[str, str]:
    """Fetch profile fields. Any failure degrades to an empty mapping."""
    try:
        user_info = await client.get_user_info(recipient_id, required_fields)
    except Exception as e:
        logger.warning(
            "user info lookup failed, personalizing with blanks",
            extra={
                "extra_fields": safe_log_context(
                    recipient_hash=hash_identifier(recipient_id),
                    field_count=len(required_fields),
                    error_type=type(e).__name__,
                )
            },
        )
        return {}
    return user_info or {}


async def personalize(
    client: PlatformClient,
    text: str,
    required_fields: Sequence[str] | None,
    recipient: Recipient | None,
) -> str:
    """Resolve ``##field##`` placeholders in ``text`` for ``recipient``.

    Args:
        client: Platform client used for the profile lookup.
        text: Message text. NEVER logged.
        required_fields: Fields to resolve, in order. Empty means no lookup.
        recipient: Recipient whose profile is looked up.

    Returns:
        The personalized text.

    Raises:
        ValueError: If fields are requested but the recipient has no id.
    """
    if not required_fields:
        return text

    if recipient is None or not recipient.id:
        raise ValueError("Personalization requires a recipient id")

    user_info = await _lookup_user_info(client, recipient.id, required_fields)
    resolved = fill_placeholders(text, required_fields, user_info)

    logger.debug(
        "message personalized",
        extra={
            "extra_fields": safe_log_context(
                recipient_hash=hash_identifier(recipient.id),
                requested=len(required_fields),
                resolved=sum(1 for f in required_fields if user_info.get(f)),
            )
        },
    )
    return resolved
