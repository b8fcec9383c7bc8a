"""Tests for EventBus."""

from unittest.mock import MagicMock

from issuechat.domain.entities.event import ErrorEvent, Event, SyncCompletedEvent
from issuechat.infrastructure.event_bus import EventBus


def make_event(message: str = "boom") -> ErrorEvent:
    return ErrorEvent(message=message)


class TestEventBus:
    """Tests for EventBus class."""

    def test_handlers_called_in_subscription_order(self) -> None:
        bus = EventBus()
        calls: list[str] = []
        bus.subscribe(lambda e: calls.append("first"))
        bus.subscribe(lambda e: calls.append("second"))

        bus.publish(make_event())

        assert calls == ["first", "second"]

    def test_events_delivered_in_publish_order(self) -> None:
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe(received.append)
        first, second = make_event("a"), make_event("b")

        bus.publish(first)
        bus.publish(second)

        assert received == [first, second]

    def test_same_handler_can_subscribe_twice(self) -> None:
        bus = EventBus()
        received: list[Event] = []
        bus.subscribe(received.append)
        bus.subscribe(received.append)

        bus.publish(make_event())

        assert len(received) == 2

    def test_unsubscribe_stops_delivery(self) -> None:
        bus = EventBus()
        handler = MagicMock()
        unsubscribe = bus.subscribe(handler)

        unsubscribe()
        bus.publish(make_event())

        handler.assert_not_called()
        assert bus.subscriber_count == 0

    def test_unsubscribe_twice_is_noop(self) -> None:
        bus = EventBus()
        unsubscribe = bus.subscribe(MagicMock())
        other = MagicMock()
        bus.subscribe(other)

        unsubscribe()
        unsubscribe()
        bus.publish(make_event())

        other.assert_called_once()
        assert bus.subscriber_count == 1

    def test_unsubscribe_during_delivery_still_delivers_current_event(
        self,
    ) -> None:
        """Handlers registered at publish time all receive the event."""
        bus = EventBus()
        late = MagicMock()
        unsubscribe_late = None

        def first(event: Event) -> None:
            unsubscribe_late()

        bus.subscribe(first)
        unsubscribe_late = bus.subscribe(late)

        bus.publish(make_event())
        late.assert_called_once()

        bus.publish(make_event())
        late.assert_called_once()

    def test_handler_can_unsubscribe_itself(self) -> None:
        bus = EventBus()
        calls: list[Event] = []
        unsubscribe = None

        def once(event: Event) -> None:
            calls.append(event)
            unsubscribe()

        unsubscribe = bus.subscribe(once)

        bus.publish(make_event())
        bus.publish(make_event())

        assert len(calls) == 1

    def test_subscribe_during_delivery_applies_to_next_publish(self) -> None:
        bus = EventBus()
        added = MagicMock()

        def adder(event: Event) -> None:
            if bus.subscriber_count == 1:
                bus.subscribe(added)

        bus.subscribe(adder)

        bus.publish(make_event())
        added.assert_not_called()

        bus.publish(make_event())
        added.assert_called_once()

    def test_failing_handler_does_not_block_others(self) -> None:
        logger = MagicMock()
        bus = EventBus(logger=logger)
        after = MagicMock()

        def broken(event: Event) -> None:
            raise RuntimeError("handler bug")

        bus.subscribe(broken)
        bus.subscribe(after)
        event = SyncCompletedEvent(snapshot=(), synced_at=make_event().timestamp)

        bus.publish(event)

        after.assert_called_once_with(event)
        logger.error.assert_called_once()
        _, kwargs = logger.error.call_args
        assert kwargs["event_type"] == "sync_completed"
        assert kwargs["error"] == "handler bug"

    def test_publish_without_subscribers(self) -> None:
        EventBus().publish(make_event())

    def test_clear_removes_all_handlers(self) -> None:
        bus = EventBus()
        handler = MagicMock()
        bus.subscribe(handler)
        bus.subscribe(handler)

        bus.clear()
        bus.publish(make_event())

        handler.assert_not_called()
        assert bus.subscriber_count == 0

    def test_clear_logs_removed_subscribers(self) -> None:
        logger = MagicMock()
        bus = EventBus(logger=logger)
        bus.subscribe(MagicMock())
        bus.subscribe(MagicMock())

        bus.clear()

        logger.debug.assert_called_once_with("Event bus cleared", subscribers=2)
