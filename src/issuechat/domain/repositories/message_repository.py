"""MessageRepository protocol."""

from datetime import datetime
from typing import Protocol

from issuechat.domain.entities.message import Message, Snapshot


class MessageRepository(Protocol):
    """Repository protocol for the current message snapshot.

    The snapshot is derived entirely from the latest successful sync and is
    replaced wholesale; readers never observe a partially updated snapshot.
    """

    @property
    def snapshot(self) -> Snapshot:
        """Return the current snapshot."""
        ...

    @property
    def synced_at(self) -> datetime | None:
        """Return the time the current snapshot was stored, if any."""
        ...

    def replace(self, snapshot: Snapshot, synced_at: datetime) -> None:
        """Replace the snapshot.

        Args:
            snapshot: The new snapshot.
            synced_at: Time of the sync that produced it.
        """
        ...

    def get_by_id(self, message_id: int) -> Message | None:
        """Get a message by ID.

        Args:
            message_id: The message ID.

        Returns:
            The message if found, None otherwise.
        """
        ...
