"""Pure query functions over message snapshots.

Consumers apply them in a fixed order for reproducible results:
search, then filter, then sort (see `apply_query`).
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict

from issuechat.domain.entities.message import Message, Snapshot
from issuechat.domain.entities.query import (
    CommentFilter,
    FilterSpec,
    MessageQuery,
    SortMode,
)


class MessageStats(BaseModel):
    """Aggregate counters for a snapshot."""

    model_config = ConfigDict(frozen=True)

    total: int
    with_comments: int
    unique_authors: int
    new_messages: int
    response_rate: int


class AuthorActivity(BaseModel):
    """Recent activity of one author."""

    model_config = ConfigDict(frozen=True)

    name: str
    avatar: str
    message_count: int
    last_seen: datetime


def search(snapshot: Sequence[Message], query: str) -> Snapshot:
    """Keep messages whose title, body or author contain the query.

    Matching is case-insensitive. A blank query returns the input unchanged.
    """
    if not query.strip():
        return tuple(snapshot)

    needle = query.lower()
    return tuple(
        message
        for message in snapshot
        if needle in message.title.lower()
        or needle in message.body.lower()
        or needle in message.author.lower()
    )


def _matches(message: Message, filters: FilterSpec) -> bool:
    if filters.author and message.author != filters.author:
        return False

    if filters.tags:
        label_names = [name.lower() for name in message.label_names]
        if not any(
            tag.lower() in name for tag in filters.tags for name in label_names
        ):
            return False

    date_range = filters.date_range
    if date_range is not None and message.created_at not in date_range:
        return False

    if filters.has_comments is not CommentFilter.UNSET:
        wanted = filters.has_comments is CommentFilter.WITH
        if (message.comment_count > 0) != wanted:
            return False

    return True


def filter_messages(
    snapshot: Sequence[Message], filters: FilterSpec
) -> Snapshot:
    """Keep messages matching every criterion that is set.

    Args:
        snapshot: Messages to filter.
        filters: Filter criteria. Unset criteria impose no constraint.

    Returns:
        Matching messages in input order.
    """
    return tuple(message for message in snapshot if _matches(message, filters))


def sort_messages(
    snapshot: Sequence[Message], mode: SortMode = SortMode.NEWEST
) -> Snapshot:
    """Sort messages. Ties keep their relative input order.

    Args:
        snapshot: Messages to sort.
        mode: `newest` (default), `oldest` or `popular`.

    Returns:
        Sorted messages.
    """
    # sorted() is stable, also with reverse=True
    if mode is SortMode.OLDEST:
        return tuple(sorted(snapshot, key=lambda m: m.created_at))
    if mode is SortMode.POPULAR:
        return tuple(sorted(snapshot, key=lambda m: m.comment_count, reverse=True))
    return tuple(sorted(snapshot, key=lambda m: m.created_at, reverse=True))


def apply_query(snapshot: Sequence[Message], query: MessageQuery) -> Snapshot:
    """Run search, filter and sort in that order."""
    searched = search(snapshot, query.search)
    filtered = filter_messages(searched, query.filters)
    return sort_messages(filtered, query.sort)


def available_authors(snapshot: Sequence[Message]) -> list[str]:
    """Return the sorted unique author logins."""
    return sorted({message.author for message in snapshot})


def available_tags(snapshot: Sequence[Message]) -> list[str]:
    """Return the sorted unique label names."""
    return sorted({name for message in snapshot for name in message.label_names})


def message_stats(snapshot: Sequence[Message]) -> MessageStats:
    """Compute aggregate counters for a snapshot."""
    total = len(snapshot)
    with_comments = sum(1 for message in snapshot if message.comment_count > 0)
    return MessageStats(
        total=total,
        with_comments=with_comments,
        unique_authors=len({message.author for message in snapshot}),
        new_messages=sum(1 for message in snapshot if message.is_new),
        response_rate=round(with_comments / total * 100) if total else 0,
    )


def active_authors(
    snapshot: Sequence[Message], now: datetime, hours_back: float = 24
) -> list[AuthorActivity]:
    """Return authors who posted within the last `hours_back` hours.

    Args:
        snapshot: Messages to inspect.
        now: Reference time.
        hours_back: Size of the activity window in hours.

    Returns:
        One entry per active author, most recently active first.
    """
    cutoff = now - timedelta(hours=hours_back)
    activity: dict[str, AuthorActivity] = {}
    for message in snapshot:
        if message.created_at <= cutoff:
            continue
        current = activity.get(message.author)
        if current is None:
            activity[message.author] = AuthorActivity(
                name=message.author,
                avatar=message.author_avatar,
                message_count=1,
                last_seen=message.created_at,
            )
        else:
            activity[message.author] = current.model_copy(
                update={
                    "message_count": current.message_count + 1,
                    "last_seen": max(current.last_seen, message.created_at),
                }
            )
    return sorted(activity.values(), key=lambda a: a.last_seen, reverse=True)
