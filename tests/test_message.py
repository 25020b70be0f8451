"""Unit tests for the Message model and the error taxonomy."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from src.core.errors import ChatError, InvalidMessage
from src.core.message import Message


def test_fields_are_trimmed():
    """Sender and body are stored without surrounding whitespace."""
    msg = Message(sender="  alice ", body="\thi there \n")
    assert msg.sender == "alice"
    assert msg.body == "hi there"
    assert msg.created_at.tzinfo is not None
    assert msg.sequence is None


def test_empty_body_rejected():
    with pytest.raises(ValidationError):
        Message(sender="alice", body="   ")


def test_create_wraps_validation_error():
    """create() surfaces the domain error instead of pydantic's."""
    with pytest.raises(InvalidMessage) as exc_info:
        Message.create(sender="", body="hello")

    assert isinstance(exc_info.value, ChatError)
    assert exc_info.value.code == "InvalidMessage"
    assert "sender" in exc_info.value.detail


def test_message_is_immutable():
    msg = Message(sender="alice", body="hi")
    with pytest.raises(ValidationError):
        msg.body = "changed"


def test_wire_format_uses_camel_case():
    """The client timestamp is advisory and kept apart from the server time."""
    client_ts = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    msg = Message.create(sender="alice", body="hi", client_timestamp=client_ts)

    wire = msg.to_wire()

    assert wire["sender"] == "alice"
    assert wire["body"] == "hi"
    assert "createdAt" in wire
    assert wire["clientTimestamp"].startswith("2024-01-01T12:00:00")
    assert wire["sequence"] is None


def test_wire_format_round_trips_through_aliases():
    msg = Message(sender="bob", body="yo")
    assert Message.model_validate(msg.to_wire()) == msg
