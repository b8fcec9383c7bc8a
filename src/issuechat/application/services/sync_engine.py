"""Sync engine keeping the message repository in step with the tracker."""

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from structlog.stdlib import BoundLogger

from issuechat.domain.entities.event import (
    ErrorEvent,
    MessageAddedEvent,
    SyncCompletedEvent,
)
from issuechat.domain.entities.issue import IssueDraft, ListOptions
from issuechat.domain.entities.message import Message, Snapshot, build_snapshot
from issuechat.domain.entities.repository import RepositoryConfig
from issuechat.domain.entities.result import Result
from issuechat.domain.exceptions import (
    AuthError,
    InvalidInputError,
    StaleSyncError,
    SyncBusyError,
    TransportError,
)
from issuechat.domain.repositories.issue_tracker import IssueTracker
from issuechat.domain.repositories.message_repository import MessageRepository
from issuechat.infrastructure.event_bus import EventBus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncState(BaseModel):
    """Sync bookkeeping owned by the engine."""

    model_config = ConfigDict(frozen=True)

    is_syncing: bool = False
    last_sync_at: datetime | None = None


class SyncEngine:
    """Orchestrates periodic and on-demand syncs against the issue tracker.

    At most one sync runs at a time; overlapping requests are rejected with
    SyncBusyError, never queued. The write path (send_message) is independent
    of the sync guard.
    """

    def __init__(
        self,
        tracker: IssueTracker,
        message_repository: MessageRepository,
        event_bus: EventBus,
        repository_config: RepositoryConfig,
        logger: BoundLogger,
        list_options: ListOptions | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the sync engine.

        Args:
            tracker: Issue tracker transport.
            message_repository: Repository holding the current snapshot.
            event_bus: Bus receiving sync and message events.
            repository_config: Repository to sync.
            logger: Logger instance.
            list_options: Options for listing issues.
            clock: Source of the current time.
        """
        self._tracker = tracker
        self._messages = message_repository
        self._event_bus = event_bus
        self._repository_config = repository_config
        self._logger = logger
        self._list_options = list_options or ListOptions()
        self._clock = clock
        self._is_syncing = False
        self._idle = asyncio.Event()
        self._idle.set()
        # Bumped by set_repository; results fetched for an older value are
        # discarded
        self._config_generation = 0
        self._last_sync_at: datetime | None = None
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> SyncState:
        """Return the current sync state."""
        return SyncState(is_syncing=self._is_syncing, last_sync_at=self._last_sync_at)

    @property
    def repository_config(self) -> RepositoryConfig:
        """Return the repository being synced."""
        return self._repository_config

    def set_repository(self, config: RepositoryConfig) -> None:
        """Switch to another repository. Takes effect on the next sync."""
        self._repository_config = config
        self._config_generation += 1
        self._logger.info("Repository configured", repository=config.slug)

    @property
    def is_polling(self) -> bool:
        """Return True if periodic polling is active."""
        return self._poll_task is not None and not self._poll_task.done()

    async def sync_once(self) -> Result[Snapshot]:
        """Fetch the issue list and replace the snapshot.

        Returns:
            The new snapshot, or the failure. SyncBusyError is returned without
            contacting the tracker when a sync is already running. Transport
            and auth failures publish an ErrorEvent and keep the previous
            snapshot. StaleSyncError is returned when the repository changed
            while the request was in flight.
        """
        if self._is_syncing:
            self._logger.debug("Sync skipped, already in progress")
            return Result.failure(SyncBusyError())

        # No await between the check above and this call
        self._set_syncing(True)
        repo = self._repository_config
        generation = self._config_generation
        previous_sync_at = self._last_sync_at
        self._logger.debug("Sync started", repository=repo.slug)

        # The guard is released before any event is published, so handlers
        # may start another sync right away.
        try:
            try:
                records = await self._tracker.list_issues(
                    repo.owner, repo.name, self._list_options
                )
            finally:
                self._set_syncing(False)
        except (TransportError, AuthError) as e:
            self._logger.warning("Sync failed", repository=repo.slug, error=str(e))
            self._event_bus.publish(ErrorEvent(message="Sync failed", cause=str(e)))
            return Result.failure(e)

        if generation != self._config_generation:
            self._logger.info(
                "Sync result discarded, repository changed",
                repository=repo.slug,
                current=self._repository_config.slug,
            )
            return Result.failure(StaleSyncError())

        snapshot = build_snapshot(records, previous_sync_at)
        synced_at = self._clock()
        self._messages.replace(snapshot, synced_at)
        self._last_sync_at = synced_at

        self._logger.info(
            "Sync completed",
            repository=repo.slug,
            count=len(snapshot),
            new=sum(1 for message in snapshot if message.is_new),
        )
        # Published after the replace so subscribers read fresh data
        self._event_bus.publish(
            SyncCompletedEvent(snapshot=snapshot, synced_at=synced_at)
        )
        return Result.success(snapshot)

    def _set_syncing(self, syncing: bool) -> None:
        self._is_syncing = syncing
        if syncing:
            self._idle.clear()
        else:
            self._idle.set()

    async def sync_after_current(self) -> Result[Snapshot]:
        """Sync once any in-flight sync has finished.

        Unlike sync_once this never returns SyncBusyError.
        """
        while True:
            await self._idle.wait()
            result = await self.sync_once()
            if not isinstance(result.error, SyncBusyError):
                return result

    def start_periodic(self, interval: float) -> None:
        """Start fixed-delay polling, restarting it if already running.

        Args:
            interval: Delay in seconds between the end of one cycle and the
                start of the next.

        Raises:
            ValueError: If interval is not positive.
        """
        if interval <= 0:
            raise ValueError(f"Sync interval must be positive, got {interval}")

        self.stop_periodic()
        self._poll_task = asyncio.create_task(self._poll(interval))
        self._logger.info("Periodic sync started", interval=interval)

    async def _poll(self, interval: float) -> None:
        """Polling loop. A failing cycle never stops the loop."""
        while True:
            await asyncio.sleep(interval)
            try:
                await self.sync_once()
            except Exception as e:
                self._logger.error(
                    "Automatic sync failed", error=str(e), exc_info=True
                )
                self._event_bus.publish(
                    ErrorEvent(message="Automatic sync failed", cause=str(e))
                )

    def stop_periodic(self) -> None:
        """Stop periodic polling. Safe to call when not running."""
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        self._poll_task = None
        self._logger.info("Periodic sync stopped")

    async def send_message(
        self, title: str, content: str, tags: Iterable[str] = ()
    ) -> Result[Message]:
        """Create a message and announce it immediately.

        The chat label is added when missing. Does not touch the sync guard.

        Args:
            title: Message title, must not be blank.
            content: Message body.
            tags: Label names to attach.

        Returns:
            The created message, or the failure.
        """
        if not title.strip():
            return Result.failure(InvalidInputError("Message title must not be empty"))

        repo = self._repository_config
        labels = list(dict.fromkeys(tag for tag in tags if tag))
        if repo.labels.chat not in labels:
            labels.append(repo.labels.chat)

        draft = IssueDraft(title=title, body=content, labels=tuple(labels))
        try:
            record = await self._tracker.create_issue(repo.owner, repo.name, draft)
        except (TransportError, AuthError) as e:
            self._logger.warning(
                "Failed to send message", repository=repo.slug, error=str(e)
            )
            return Result.failure(e)

        message = Message.from_record(record, self._last_sync_at)
        self._logger.info(
            "Message sent", repository=repo.slug, message_id=message.id
        )
        self._event_bus.publish(MessageAddedEvent(message=message))
        return Result.success(message)

    async def close(self) -> None:
        """Stop polling and wait for the polling task to finish."""
        task = self._poll_task
        self.stop_periodic()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
