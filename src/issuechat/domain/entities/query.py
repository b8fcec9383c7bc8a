"""Value objects describing a query over a message snapshot."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CommentFilter(str, Enum):
    """Three-valued constraint on whether a message has comments."""

    UNSET = "unset"
    WITH = "with"
    WITHOUT = "without"

    @classmethod
    def from_flag(cls, flag: bool | None) -> "CommentFilter":
        """Map an optional boolean onto the three-valued filter."""
        if flag is None:
            return cls.UNSET
        return cls.WITH if flag else cls.WITHOUT


class SortMode(str, Enum):
    """Sort order for a message list."""

    NEWEST = "newest"
    OLDEST = "oldest"
    POPULAR = "popular"


class DateRange(BaseModel):
    """Inclusive creation-time range."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self

    def __contains__(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class FilterSpec(BaseModel):
    """Structured filter criteria, all ANDed together.

    Attributes:
        author: Exact author login, empty for no constraint.
        tags: Tags of which any must appear in a label name.
        has_comments: Comment constraint.
        date_range: Inclusive creation-time range.
    """

    model_config = ConfigDict(frozen=True)

    author: str = ""
    tags: frozenset[str] = frozenset()
    has_comments: CommentFilter = CommentFilter.UNSET
    date_range: DateRange | None = None


class MessageQuery(BaseModel):
    """Complete view request: search, then filter, then sort."""

    model_config = ConfigDict(frozen=True)

    search: str = ""
    filters: FilterSpec = Field(default_factory=FilterSpec)
    sort: SortMode = SortMode.NEWEST
