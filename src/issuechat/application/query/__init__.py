"""Query engine for message snapshots."""

from issuechat.application.query.engine import (
    AuthorActivity,
    MessageStats,
    active_authors,
    apply_query,
    available_authors,
    available_tags,
    filter_messages,
    message_stats,
    search,
    sort_messages,
)

__all__ = [
    "AuthorActivity",
    "MessageStats",
    "active_authors",
    "apply_query",
    "available_authors",
    "available_tags",
    "filter_messages",
    "message_stats",
    "search",
    "sort_messages",
]
