"""Shared fixtures for unit tests."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest
import structlog

from issuechat.application.services.sync_engine import SyncEngine
from issuechat.domain.entities.event import Event
from issuechat.domain.entities.issue import (
    AccessReport,
    IssueAuthor,
    IssueDraft,
    IssueRecord,
    Label,
    ListOptions,
)
from issuechat.domain.entities.message import Message
from issuechat.domain.entities.repository import RepositoryConfig
from issuechat.infrastructure.event_bus import EventBus
from issuechat.infrastructure.persistence import InMemoryMessageRepository

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

GRANTED = AccessReport(accessible=True, can_read=True, can_write=True)


def build_record(
    issue_id: int,
    *,
    title: str = "Hello",
    body: str | None = "Body",
    author: str = "alice",
    created_at: datetime | None = None,
    comments: int = 0,
    labels: tuple[str, ...] = (),
) -> IssueRecord:
    created = created_at or BASE_TIME - timedelta(minutes=issue_id)
    return IssueRecord(
        id=issue_id,
        number=issue_id,
        title=title,
        body=body,
        author=IssueAuthor(name=author, avatar_url=f"https://avatars/{author}"),
        created_at=created,
        updated_at=created,
        comment_count=comments,
        labels=tuple(Label(name=name, color="ededed") for name in labels),
    )


def build_message(
    message_id: int,
    *,
    title: str = "Hello",
    body: str = "Body",
    author: str = "alice",
    created_at: datetime | None = None,
    comments: int = 0,
    labels: tuple[str, ...] = (),
    is_new: bool = False,
) -> Message:
    record = build_record(
        message_id,
        title=title,
        body=body,
        author=author,
        created_at=created_at,
        comments=comments,
        labels=labels,
    )
    return Message.from_record(record, None).model_copy(update={"is_new": is_new})


class FakeClock:
    """Controllable clock."""

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeIssueTracker:
    """In-memory IssueTracker with failure injection and an optional gate."""

    def __init__(self) -> None:
        self.records: list[IssueRecord] = []
        self.list_error: Exception | None = None
        self.create_error: Exception | None = None
        self.validate_error: Exception | None = None
        self.access = GRANTED
        self.access_results: list[AccessReport] = []
        self.validate_hook: Callable[[], None] | None = None
        self.gate: asyncio.Event | None = None
        self.validate_gate: asyncio.Event | None = None
        self.api_key: str | None = None

        self.list_calls: list[tuple[str, str, ListOptions]] = []
        self.created: list[tuple[str, str, IssueDraft]] = []
        self.validate_calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self._next_id = 1000

    async def list_issues(
        self, owner: str, repo: str, options: ListOptions
    ) -> list[IssueRecord]:
        self.list_calls.append((owner, repo, options))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.list_error is not None:
                raise self.list_error
            return list(self.records)
        finally:
            self.in_flight -= 1

    async def create_issue(
        self, owner: str, repo: str, draft: IssueDraft
    ) -> IssueRecord:
        if self.create_error is not None:
            raise self.create_error
        self.created.append((owner, repo, draft))
        self._next_id += 1
        return IssueRecord(
            id=self._next_id,
            number=self._next_id,
            title=draft.title,
            body=draft.body,
            author=IssueAuthor(name="me"),
            created_at=BASE_TIME + timedelta(hours=1),
            updated_at=BASE_TIME + timedelta(hours=1),
            labels=tuple(Label(name=name) for name in draft.labels),
        )

    async def validate_access(self, owner: str, repo: str) -> AccessReport:
        self.validate_calls += 1
        if self.validate_hook is not None:
            self.validate_hook()
        if self.validate_gate is not None:
            await self.validate_gate.wait()
        if self.validate_error is not None:
            raise self.validate_error
        if self.access_results:
            return self.access_results.pop(0)
        return self.access

    def set_api_key(self, api_key: str | None) -> None:
        self.api_key = api_key


@pytest.fixture
def logger() -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger("test")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker() -> FakeIssueTracker:
    return FakeIssueTracker()


@pytest.fixture
def make_record() -> Callable[..., IssueRecord]:
    return build_record


@pytest.fixture
def make_message() -> Callable[..., Message]:
    return build_message


@pytest.fixture
def event_bus(logger: structlog.stdlib.BoundLogger) -> EventBus:
    return EventBus(logger=logger)


@pytest.fixture
def events(event_bus: EventBus) -> list[Event]:
    """Events published on the bus, in order."""
    received: list[Event] = []
    event_bus.subscribe(received.append)
    return received


@pytest.fixture
def message_repository() -> InMemoryMessageRepository:
    return InMemoryMessageRepository()


@pytest.fixture
def repository_config() -> RepositoryConfig:
    return RepositoryConfig.from_slug("acme/chat")


@pytest.fixture
async def sync_engine(
    tracker: FakeIssueTracker,
    message_repository: InMemoryMessageRepository,
    event_bus: EventBus,
    repository_config: RepositoryConfig,
    logger: structlog.stdlib.BoundLogger,
    clock: FakeClock,
):
    engine = SyncEngine(
        tracker=tracker,
        message_repository=message_repository,
        event_bus=event_bus,
        repository_config=repository_config,
        logger=logger,
        clock=clock,
    )
    yield engine
    await engine.close()
