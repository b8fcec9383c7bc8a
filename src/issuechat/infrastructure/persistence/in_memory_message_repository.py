"""In-memory implementation of MessageRepository."""

from datetime import datetime

from issuechat.domain.entities.message import Message, Snapshot


class InMemoryMessageRepository:
    """In-memory implementation of MessageRepository.

    Holds one immutable snapshot plus an ID index. Both are swapped in a
    single step on replace.
    """

    def __init__(self) -> None:
        """Initialize an empty repository."""
        self._snapshot: Snapshot = ()
        self._index: dict[int, Message] = {}
        self._synced_at: datetime | None = None

    @property
    def snapshot(self) -> Snapshot:
        """Return the current snapshot."""
        return self._snapshot

    @property
    def synced_at(self) -> datetime | None:
        """Return the time the current snapshot was stored, if any."""
        return self._synced_at

    def __len__(self) -> int:
        return len(self._snapshot)

    def replace(self, snapshot: Snapshot, synced_at: datetime) -> None:
        """Replace the snapshot.

        Args:
            snapshot: The new snapshot.
            synced_at: Time of the sync that produced it.

        Raises:
            ValueError: If the snapshot contains duplicate message IDs.
        """
        index = {message.id: message for message in snapshot}
        if len(index) != len(snapshot):
            raise ValueError("Snapshot contains duplicate message IDs")
        self._snapshot, self._index, self._synced_at = (
            tuple(snapshot),
            index,
            synced_at,
        )

    def get_by_id(self, message_id: int) -> Message | None:
        """Get a message by ID.

        Args:
            message_id: The message ID.

        Returns:
            The message if found, None otherwise.
        """
        return self._index.get(message_id)
