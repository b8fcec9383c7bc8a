"""IssueTracker protocol."""

from typing import Protocol

from issuechat.domain.entities.issue import (
    AccessReport,
    IssueDraft,
    IssueRecord,
    ListOptions,
)


class IssueTracker(Protocol):
    """Transport protocol for the hosted issue tracker.

    Stateless request/response wrapper turning HTTP calls into typed records.
    """

    async def list_issues(
        self, owner: str, repo: str, options: ListOptions
    ) -> list[IssueRecord]:
        """List issues of a repository in remote order.

        Args:
            owner: Repository owner.
            repo: Repository name.
            options: State, page size and ordering.

        Returns:
            List of issue records.

        Raises:
            TransportError: If the request fails.
            AuthError: If the tracker denies access.
        """
        ...

    async def create_issue(
        self, owner: str, repo: str, draft: IssueDraft
    ) -> IssueRecord:
        """Create an issue.

        Args:
            owner: Repository owner.
            repo: Repository name.
            draft: Title, body and labels of the new issue.

        Returns:
            The created issue.

        Raises:
            TransportError: If the request fails.
            AuthError: If the tracker denies access.
        """
        ...

    async def validate_access(self, owner: str, repo: str) -> AccessReport:
        """Probe read and write access to a repository.

        HTTP failures are reported in the returned report, not raised.

        Args:
            owner: Repository owner.
            repo: Repository name.

        Returns:
            The access report.
        """
        ...

    def set_api_key(self, api_key: str | None) -> None:
        """Set or clear the API key used for subsequent requests."""
        ...
