"""Tests for Messenger sender actions (presence indicators)."""

import asyncio

import pytest

from chatrelay.messenger.client import PlatformError, PresenceSignalError
from chatrelay.messenger.delay import estimate_delay
from chatrelay.messenger.models import OutboundMessage, Recipient
from chatrelay.messenger.sender_actions import (
    build_sender_action,
    mark_seen,
    send_typing_on,
    typing_off,
)
from fakes import RecordingClient

RECIPIENT = Recipient(id="psid-1")


def test_build_sender_action():
    assert build_sender_action(RECIPIENT, "typing_on") == {
        "recipient": {"id": "psid-1"},
        "sender_action": "typing_on",
    }


def test_mark_seen_sends_one_action(platform, no_sleep):
    asyncio.run(mark_seen(platform, RECIPIENT))

    assert platform.bodies == [{"recipient": {"id": "psid-1"}, "sender_action": "mark_seen"}]
    no_sleep.assert_not_called()


def test_typing_off(platform):
    asyncio.run(typing_off(platform, RECIPIENT))
    assert platform.sender_actions == ["typing_off"]


def test_typing_on_waits_for_text_delay(platform, no_sleep):
    message = OutboundMessage(text="No bell!")

    asyncio.run(send_typing_on(platform, RECIPIENT, message))

    assert platform.sender_actions == ["typing_on"]
    no_sleep.assert_awaited_once()
    (seconds,), _ = no_sleep.call_args
    assert seconds == pytest.approx(estimate_delay("No bell!") / 1000)


def test_typing_on_uses_attachment_payload_text(platform, no_sleep):
    text = "I'm going on an adventure!"
    message = OutboundMessage(attachment={"payload": {"text": text}})

    asyncio.run(send_typing_on(platform, RECIPIENT, message))

    (seconds,), _ = no_sleep.call_args
    assert seconds == pytest.approx(estimate_delay(text) / 1000)


def test_typing_on_attachment_without_text_waits_zero(platform, no_sleep):
    message = OutboundMessage(attachment={"type": "image", "payload": {"url": "x"}})

    asyncio.run(send_typing_on(platform, RECIPIENT, message))

    no_sleep.assert_awaited_once_with(0.0)


def test_typing_on_failure_skips_wait(no_sleep):
    client = RecordingClient(fail_sender_actions=True)

    with pytest.raises(PresenceSignalError) as exc_info:
        asyncio.run(send_typing_on(client, RECIPIENT, OutboundMessage(text="hello")))

    assert isinstance(exc_info.value.__cause__, PlatformError)
    no_sleep.assert_not_called()


def test_mark_seen_failure_raises():
    client = RecordingClient(fail_sender_actions=True)
    with pytest.raises(PresenceSignalError):
        asyncio.run(mark_seen(client, RECIPIENT))


def test_typing_delay_does_not_block_other_sends():
    """Two concurrent typing waits overlap instead of running back to back."""
    client = RecordingClient()
    message = OutboundMessage(text=" ".join(["word"] * 3))  # 0.4s each

    async def run_both():
        loop = asyncio.get_running_loop()
        start = loop.time()
        await asyncio.gather(
            send_typing_on(client, Recipient(id="a"), message),
            send_typing_on(client, Recipient(id="b"), message),
        )
        return loop.time() - start

    elapsed = asyncio.run(run_both())

    assert client.sender_actions == ["typing_on", "typing_on"]
    assert elapsed < 0.7
