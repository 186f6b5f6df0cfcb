"""Tests for outbound message models."""

import pytest

from chatrelay.messenger.models import OutboundMessage, Recipient


def test_recipient_round_trip():
    assert Recipient.from_dict({"id": 123}).to_dict() == {"id": "123"}


def test_empty_recipient_serializes_empty():
    assert Recipient.from_dict({}).to_dict() == {}
    assert Recipient.from_dict(None) == Recipient()


def test_from_dict_reads_chatbot_shape():
    message = OutboundMessage.from_dict(
        {
            "recipient": {"id": "recipient_id"},
            "required_user_fields": ["first_name"],
            "text": "Hi ##first_name##!",
        }
    )
    assert message.recipient == Recipient(id="recipient_id")
    assert message.required_user_fields == ("first_name",)
    assert message.attachment is None


def test_from_dict_keeps_attachment_object():
    attachment = {"type": "template", "payload": {"text": "Pick one"}}
    message = OutboundMessage.from_dict({"attachment": attachment})
    assert message.attachment is attachment
    assert message.recipient is None


def test_typing_text_prefers_text():
    message = OutboundMessage(text="hello", attachment={"payload": {"text": "other"}})
    assert message.typing_text() == "hello"


def test_typing_text_falls_back_to_payload_text():
    assert OutboundMessage(attachment={"payload": {"text": "other"}}).typing_text() == "other"


def test_typing_text_empty_when_nothing_to_type():
    assert OutboundMessage(attachment={"type": "image"}).typing_text() == ""


def test_validate_rejects_empty_message():
    with pytest.raises(ValueError):
        OutboundMessage().validate()


def test_validate_accepts_attachment_only():
    OutboundMessage(attachment={"payload": {}}).validate()
