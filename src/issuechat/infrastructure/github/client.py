"""GitHub Issues implementation of IssueTracker."""

import asyncio
from typing import Any

import aiohttp
from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from issuechat.config.models import GitHubConfig
from issuechat.domain.entities.issue import (
    AccessReport,
    IssueAuthor,
    IssueDraft,
    IssueRecord,
    Label,
    ListOptions,
)
from issuechat.domain.exceptions import AuthError, SyncError, TransportError

DEFAULT_HEADERS = {
    "Accept": "application/vnd.github.v3+json",
}

ACCESS_CHECK_DRAFT = IssueDraft(
    title="Access check",
    body="Automatic write access check. This issue is closed right away.",
    labels=("test",),
)


def parse_issue(data: dict[str, Any]) -> IssueRecord:
    """Convert a GitHub issue payload into an IssueRecord.

    Args:
        data: Issue object from the REST API.

    Returns:
        The issue record.

    Raises:
        TransportError: If the payload is malformed.
    """
    try:
        user = data.get("user") or {}
        return IssueRecord(
            id=data["id"],
            number=data.get("number", 0),
            title=data["title"],
            body=data.get("body"),
            author=IssueAuthor(
                name=user.get("login", "ghost"),
                avatar_url=user.get("avatar_url", ""),
            ),
            created_at=data["created_at"],
            updated_at=data["updated_at"],
            comment_count=data.get("comments", 0),
            labels=tuple(
                Label(
                    name=label["name"],
                    color=label.get("color") or "",
                    description=label.get("description"),
                )
                for label in data.get("labels") or []
                if isinstance(label, dict)
            ),
        )
    except (KeyError, TypeError, ValidationError) as e:
        raise TransportError(f"Malformed issue payload: {e}") from e


class GitHubIssueTracker:
    """GitHub REST API client for repository issues.

    The aiohttp session is created on first use and released by close().

    Args:
        config: API base URL, page size and timeout.
        logger: Structured logger.
        api_key: Personal access token, None for anonymous access.
        session: Existing session to use instead of creating one.
    """

    def __init__(
        self,
        config: GitHubConfig,
        logger: BoundLogger,
        api_key: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._logger = logger
        self._api_key = api_key
        self._session = session
        self._owns_session = session is None

    def set_api_key(self, api_key: str | None) -> None:
        """Set or clear the token used for subsequent requests."""
        self._api_key = api_key or None

    def _headers(self) -> dict[str, str]:
        headers = dict(DEFAULT_HEADERS)
        if self._api_key:
            headers["Authorization"] = f"token {self._api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout)
            )
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            AuthError: On 401, or 403 not caused by rate limiting.
            TransportError: On any other HTTP or network failure.
        """
        url = self._config.api_base_url.rstrip("/") + path
        try:
            async with self._get_session().request(
                method, url, headers=self._headers(), params=params, json=payload
            ) as response:
                if response.status >= 400:
                    message = f"GitHub API error: {response.status} {response.reason}"
                    rate_limited = response.headers.get("X-RateLimit-Remaining") == "0"
                    if response.status in (401, 403) and not rate_limited:
                        raise AuthError(message)
                    raise TransportError(message, status=response.status)
                return await response.json()
        except aiohttp.ClientError as e:
            raise TransportError(f"GitHub request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportError("GitHub request timed out") from e

    async def list_issues(
        self, owner: str, repo: str, options: ListOptions
    ) -> list[IssueRecord]:
        """List issues in remote order, skipping pull requests."""
        params = {
            "state": options.state,
            "per_page": str(options.page_size),
            "sort": options.sort,
            "direction": options.order,
        }
        data = await self._request("GET", f"/repos/{owner}/{repo}/issues", params)
        if not isinstance(data, list):
            raise TransportError("Unexpected issue list payload")

        issues = [
            parse_issue(item)
            for item in data
            if isinstance(item, dict) and "pull_request" not in item
        ]
        self._logger.debug(
            "Issues fetched", owner=owner, repo=repo, count=len(issues)
        )
        return issues

    async def create_issue(
        self, owner: str, repo: str, draft: IssueDraft
    ) -> IssueRecord:
        """Create an issue."""
        data = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues",
            payload={
                "title": draft.title,
                "body": draft.body,
                "labels": list(draft.labels),
            },
        )
        if not isinstance(data, dict):
            raise TransportError("Unexpected issue payload")
        return parse_issue(data)

    async def validate_access(self, owner: str, repo: str) -> AccessReport:
        """Probe repository, read and write access in that order.

        Write access is read from the repository's `permissions.push` flag
        when the API reports it (authenticated requests). Otherwise a test
        issue is created and closed again.
        """
        try:
            repo_data = await self._request("GET", f"/repos/{owner}/{repo}")
        except SyncError as e:
            return AccessReport(
                accessible=False, can_read=False, can_write=False, error=str(e)
            )

        try:
            await self._request(
                "GET", f"/repos/{owner}/{repo}/issues", params={"per_page": "1"}
            )
        except SyncError as e:
            return AccessReport(
                accessible=True, can_read=False, can_write=False, error=str(e)
            )

        permissions = None
        if isinstance(repo_data, dict):
            permissions = repo_data.get("permissions")
        if isinstance(permissions, dict) and "push" in permissions:
            can_write = bool(permissions["push"])
            return AccessReport(
                accessible=True,
                can_read=True,
                can_write=can_write,
                error=None if can_write else "No write access to issues",
            )

        try:
            probe = await self.create_issue(owner, repo, ACCESS_CHECK_DRAFT)
        except SyncError as e:
            return AccessReport(
                accessible=True,
                can_read=True,
                can_write=False,
                error=f"Cannot create issues: {e}",
            )

        try:
            await self._request(
                "PATCH",
                f"/repos/{owner}/{repo}/issues/{probe.number}",
                payload={"state": "closed"},
            )
        except SyncError as e:
            self._logger.warning(
                "Failed to close access check issue",
                owner=owner,
                repo=repo,
                number=probe.number,
                error=str(e),
            )

        return AccessReport(accessible=True, can_read=True, can_write=True)

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
