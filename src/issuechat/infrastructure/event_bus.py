"""EventBus implementation with synchronous in-order delivery."""

from collections.abc import Callable

import structlog
from structlog.stdlib import BoundLogger

from issuechat.domain.entities.event import Event

EventHandler = Callable[[Event], None]
Unsubscribe = Callable[[], None]


class EventBus:
    """In-memory publish/subscribe channel for chat events.

    Supports:
    - Synchronous delivery in publish order
    - Handler list captured per publish: handlers added or removed during a
      delivery only affect later publishes
    - Unsubscribing at any time, including from inside a handler
    """

    def __init__(self, logger: BoundLogger | None = None) -> None:
        """Initialize the event bus.

        Args:
            logger: Logger used to report failing handlers.
        """
        self._logger = logger or structlog.stdlib.get_logger(__name__)
        # Keyed by subscription token so the same callable can subscribe twice
        self._handlers: dict[int, EventHandler] = {}
        self._next_token = 0

    @property
    def subscriber_count(self) -> int:
        """Return the number of registered handlers."""
        return len(self._handlers)

    def subscribe(self, handler: EventHandler) -> Unsubscribe:
        """Register a handler.

        Args:
            handler: Callable invoked with every published event.

        Returns:
            A function removing the handler. Calling it more than once is a
            no-op.
        """
        token = self._next_token
        self._next_token += 1
        self._handlers[token] = handler

        def unsubscribe() -> None:
            self._handlers.pop(token, None)

        return unsubscribe

    def publish(self, event: Event) -> None:
        """Deliver an event to every handler registered right now.

        A handler that raises is logged and does not prevent delivery to the
        remaining handlers.

        Args:
            event: The event to publish.
        """
        for handler in list(self._handlers.values()):
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    "Event handler failed",
                    event_id=event.id,
                    event_type=event.type.value,
                    error=str(e),
                    exc_info=True,
                )

    def clear(self) -> None:
        """Remove all handlers."""
        self._logger.debug("Event bus cleared", subscribers=self.subscriber_count)
        self._handlers.clear()
