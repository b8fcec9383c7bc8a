"""Message entity built from tracker issues."""

from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from issuechat.domain.entities.issue import IssueRecord, Label


class Message(BaseModel):
    """Chat message backed by a tracker issue.

    Immutable once constructed.

    Attributes:
        id: Stable issue ID, unique within a snapshot.
        title: Message title.
        body: Message content, empty string when the issue has no body.
        author: Author login.
        author_avatar: Author avatar URL.
        created_at: Creation time.
        updated_at: Last update time.
        comment_count: Number of comments.
        is_new: Whether the message was created after the previous sync.
        labels: Labels attached to the message.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    body: str = ""
    author: str
    author_avatar: str = ""
    created_at: datetime
    updated_at: datetime
    comment_count: int = Field(default=0, ge=0)
    is_new: bool = False
    labels: tuple[Label, ...] = ()

    @classmethod
    def from_record(
        cls, record: IssueRecord, last_sync_at: datetime | None
    ) -> "Message":
        """Build a message from a tracker record.

        Args:
            record: The issue record.
            last_sync_at: Timestamp of the previous successful sync. The
                message is new if it was created strictly after it.

        Returns:
            The message.
        """
        is_new = last_sync_at is not None and record.created_at > last_sync_at
        return cls(
            id=record.id,
            title=record.title,
            body=record.body or "",
            author=record.author.name,
            author_avatar=record.author.avatar_url,
            created_at=record.created_at,
            updated_at=record.updated_at,
            comment_count=record.comment_count,
            is_new=is_new,
            labels=record.labels,
        )

    @property
    def label_names(self) -> tuple[str, ...]:
        """Return the names of the attached labels."""
        return tuple(label.name for label in self.labels)


# Full ordered set of known messages as of the last successful sync.
Snapshot = tuple[Message, ...]


def build_snapshot(
    records: Sequence[IssueRecord], last_sync_at: datetime | None
) -> Snapshot:
    """Build a snapshot from tracker records, preserving their order.

    Records repeating an already seen ID are dropped so IDs stay unique.

    Args:
        records: Records in remote order.
        last_sync_at: Timestamp of the previous successful sync.

    Returns:
        The snapshot.
    """
    seen: set[int] = set()
    messages: list[Message] = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        messages.append(Message.from_record(record, last_sync_at))
    return tuple(messages)
