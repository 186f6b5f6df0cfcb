"""Messenger outbound message models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Recipient:
    """Platform address of a conversation participant.

    ``id`` is the page-scoped user id. PII: never log it, use
    ``hash_identifier`` instead.
    """

    id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Recipient":
        if not data:
            return cls()
        recipient_id = data.get("id")
        return cls(id=str(recipient_id) if recipient_id is not None else None)

    def to_dict(self) -> dict[str, str]:
        if self.id is None:
            return {}
        return {"id": self.id}


@dataclass(frozen=True)
class OutboundMessage:
    """A single chatbot message waiting to be relayed.

    ``attachment`` is passed through to the platform untouched. Its
    ``payload.text`` only feeds the typing delay when ``text`` is missing.
    """

    text: str | None = None
    attachment: dict[str, Any] | None = None
    recipient: Recipient | None = None
    required_user_fields: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OutboundMessage":
        """Build from the chatbot JSON shape.

        Example:
            {"recipient": {"id": "123"}, "text": "Hi ##first_name##!",
             "required_user_fields": ["first_name"]}
        """
        recipient = data.get("recipient")
        return cls(
            text=data.get("text"),
            attachment=data.get("attachment"),
            recipient=Recipient.from_dict(recipient) if recipient is not None else None,
            required_user_fields=tuple(data.get("required_user_fields") or ()),
        )

    def typing_text(self) -> str:
        """Text the typing delay is estimated from."""
        if self.text:
            return self.text
        if self.attachment:
            payload = self.attachment.get("payload") or {}
            return payload.get("text") or ""
        return ""

    def validate(self) -> None:
        """Raise ValueError unless the message has text or an attachment."""
        if not self.text and self.attachment is None:
            raise ValueError("Outbound message requires text or attachment")
