"""GitHub transport."""

from issuechat.infrastructure.github.client import GitHubIssueTracker, parse_issue

__all__ = ["GitHubIssueTracker", "parse_issue"]
