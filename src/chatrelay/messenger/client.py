"""Platform client contract and the errors the pipeline raises."""

from typing import Any, Protocol, Sequence


class PlatformClient(Protocol):
    """What the pipeline needs from the messaging platform.

    Implementations must be safe to share between concurrent calls.
    """

    async def send_message(self, body: dict[str, Any]) -> dict[str, Any]:
        """Send a presence update or content body. Raises on failure."""
        ...

    async def get_user_info(
        self, recipient_id: str, required_fields: Sequence[str]
    ) -> dict[str, str]:
        """Fetch profile fields for a recipient. Raises on failure."""
        ...


class PlatformError(Exception):
    """Transport or API failure reported by a platform client."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PresenceSignalError(Exception):
    """The typing/seen indicator could not be delivered. Aborts the send."""


class MessageSendError(Exception):
    """The content message could not be delivered."""
