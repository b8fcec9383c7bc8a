"""Chat events published on the event bus."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal

import ulid
from pydantic import BaseModel, ConfigDict, Field

from issuechat.domain.entities.message import Message, Snapshot


class EventType(str, Enum):
    """Event type enumeration."""

    MESSAGE_ADDED = "message_added"
    SYNC_COMPLETED = "sync_completed"
    ERROR = "error"


class Event(BaseModel):
    """Base class for all chat events."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(ulid.new()))
    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MessageAddedEvent(Event):
    """A message was created through the write path."""

    type: Literal[EventType.MESSAGE_ADDED] = EventType.MESSAGE_ADDED
    message: Message


class SyncCompletedEvent(Event):
    """A sync cycle replaced the snapshot."""

    type: Literal[EventType.SYNC_COMPLETED] = EventType.SYNC_COMPLETED
    snapshot: Snapshot
    synced_at: datetime


class ErrorEvent(Event):
    """A background operation failed."""

    type: Literal[EventType.ERROR] = EventType.ERROR
    message: str
    cause: str | None = None


ChatEvent = Annotated[
    MessageAddedEvent | SyncCompletedEvent | ErrorEvent,
    Field(discriminator="type"),
]
