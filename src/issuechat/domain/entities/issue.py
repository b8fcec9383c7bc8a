"""Records exchanged with the issue tracker transport."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class Label(BaseModel):
    """Label attached to an issue."""

    model_config = ConfigDict(frozen=True)

    name: str
    color: str = ""
    description: str | None = None


class IssueAuthor(BaseModel):
    """Author of an issue."""

    model_config = ConfigDict(frozen=True)

    name: str
    avatar_url: str = ""


class IssueRecord(BaseModel):
    """Typed issue as returned by the tracker.

    Attributes:
        id: Globally unique, stable issue ID.
        number: Per-repository issue number.
        title: Issue title.
        body: Issue body, None when the issue has no description.
        author: Issue author.
        created_at: Creation time.
        updated_at: Last update time.
        comment_count: Number of comments.
        labels: Labels attached to the issue.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    number: int = 0
    title: str
    body: str | None = None
    author: IssueAuthor
    created_at: datetime
    updated_at: datetime
    comment_count: int = Field(default=0, ge=0)
    labels: tuple[Label, ...] = ()


class IssueDraft(BaseModel):
    """Payload for creating a new issue."""

    model_config = ConfigDict(frozen=True)

    title: str
    body: str = ""
    labels: tuple[str, ...] = ()


class ListOptions(BaseModel):
    """Query options for listing issues."""

    model_config = ConfigDict(frozen=True)

    state: Literal["open", "closed", "all"] = "open"
    page_size: int = Field(default=50, gt=0, le=100)
    sort: Literal["created", "updated", "comments"] = "created"
    order: Literal["asc", "desc"] = "desc"


class AccessReport(BaseModel):
    """Outcome of a repository access probe."""

    model_config = ConfigDict(frozen=True)

    accessible: bool
    can_read: bool
    can_write: bool
    error: str | None = None

    @property
    def granted(self) -> bool:
        """Return True if the repository is reachable, readable and writable."""
        return self.accessible and self.can_read and self.can_write
