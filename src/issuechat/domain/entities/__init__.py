"""Domain entities."""

from issuechat.domain.entities.event import (
    ChatEvent,
    ErrorEvent,
    Event,
    EventType,
    MessageAddedEvent,
    SyncCompletedEvent,
)
from issuechat.domain.entities.issue import (
    AccessReport,
    IssueAuthor,
    IssueDraft,
    IssueRecord,
    Label,
    ListOptions,
)
from issuechat.domain.entities.message import Message, Snapshot, build_snapshot
from issuechat.domain.entities.query import (
    CommentFilter,
    DateRange,
    FilterSpec,
    MessageQuery,
    SortMode,
)
from issuechat.domain.entities.repository import LabelTaxonomy, RepositoryConfig
from issuechat.domain.entities.result import Result

__all__ = [
    "AccessReport",
    "ChatEvent",
    "CommentFilter",
    "DateRange",
    "ErrorEvent",
    "Event",
    "EventType",
    "FilterSpec",
    "IssueAuthor",
    "IssueDraft",
    "IssueRecord",
    "Label",
    "LabelTaxonomy",
    "ListOptions",
    "Message",
    "MessageAddedEvent",
    "MessageQuery",
    "RepositoryConfig",
    "Result",
    "Snapshot",
    "SortMode",
    "SyncCompletedEvent",
    "build_snapshot",
]
