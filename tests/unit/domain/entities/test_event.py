"""Tests for chat events."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from issuechat.domain.entities.event import (
    ChatEvent,
    ErrorEvent,
    EventType,
    MessageAddedEvent,
    SyncCompletedEvent,
)
from issuechat.domain.entities.message import Message

TIMESTAMP_TOLERANCE_SECONDS = 5

MessageFactory = Callable[..., Message]


class TestEventDefaults:
    """Tests for fields shared by all events."""

    def test_event_id_is_ulid_format(self) -> None:
        """Event ID is auto-generated in ULID format (26 chars)."""
        event = ErrorEvent(message="boom")

        assert len(event.id) == 26
        assert event.id.isalnum()

    def test_event_ids_are_unique(self) -> None:
        assert ErrorEvent(message="a").id != ErrorEvent(message="a").id

    def test_timestamp_is_auto_set(self) -> None:
        before = datetime.now(timezone.utc)
        event = ErrorEvent(message="boom")
        after = datetime.now(timezone.utc)

        assert event.timestamp.tzinfo is not None
        assert (
            before - timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
            <= event.timestamp
            <= after + timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
        )

    def test_events_are_immutable(self) -> None:
        event = ErrorEvent(message="boom")

        with pytest.raises(ValidationError):
            event.message = "other"  # type: ignore[misc]


class TestEventVariants:
    """Tests for the event variants."""

    def test_message_added(self, make_message: MessageFactory) -> None:
        message = make_message(1)
        event = MessageAddedEvent(message=message)

        assert event.type == EventType.MESSAGE_ADDED
        assert event.message == message

    def test_sync_completed(self, make_message: MessageFactory) -> None:
        synced_at = datetime(2024, 5, 1, tzinfo=timezone.utc)
        snapshot = (make_message(1), make_message(2))

        event = SyncCompletedEvent(snapshot=snapshot, synced_at=synced_at)

        assert event.type == EventType.SYNC_COMPLETED
        assert [m.id for m in event.snapshot] == [1, 2]
        assert event.synced_at == synced_at

    def test_error_cause_defaults_to_none(self) -> None:
        event = ErrorEvent(message="Sync failed")

        assert event.type == EventType.ERROR
        assert event.cause is None

    def test_type_cannot_be_overridden(self) -> None:
        with pytest.raises(ValidationError):
            ErrorEvent(type=EventType.SYNC_COMPLETED, message="x")


class TestChatEventUnion:
    """Tests for the tagged union."""

    def test_validates_by_discriminator(self) -> None:
        adapter: TypeAdapter[ChatEvent] = TypeAdapter(ChatEvent)

        event = adapter.validate_python(
            {"type": "error", "message": "Sync failed", "cause": "timeout"}
        )

        assert isinstance(event, ErrorEvent)
        assert event.cause == "timeout"

    def test_round_trips_through_json(self, make_message: MessageFactory) -> None:
        adapter: TypeAdapter[ChatEvent] = TypeAdapter(ChatEvent)
        original = MessageAddedEvent(message=make_message(3, labels=("chat",)))

        restored = adapter.validate_json(original.model_dump_json())

        assert isinstance(restored, MessageAddedEvent)
        assert restored == original

    def test_unknown_type_rejected(self) -> None:
        adapter: TypeAdapter[ChatEvent] = TypeAdapter(ChatEvent)

        with pytest.raises(ValidationError):
            adapter.validate_python({"type": "user_joined"})
