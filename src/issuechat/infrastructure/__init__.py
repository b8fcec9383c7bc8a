"""Infrastructure layer."""

from issuechat.infrastructure.event_bus import EventBus
from issuechat.infrastructure.persistence import InMemoryMessageRepository

__all__ = ["EventBus", "InMemoryMessageRepository"]
