"""Chat room service composing sync, connection supervision and queries."""

from types import EllipsisType

from structlog.stdlib import BoundLogger

from issuechat.application.query import (
    MessageStats,
    apply_query,
    message_stats,
)
from issuechat.application.services.connection_supervisor import (
    ConnectionStatus,
    ConnectionSupervisor,
)
from issuechat.application.services.sync_engine import SyncEngine
from issuechat.domain.entities.event import (
    ErrorEvent,
    Event,
    SyncCompletedEvent,
)
from issuechat.domain.entities.message import Message, Snapshot
from issuechat.domain.entities.query import MessageQuery
from issuechat.domain.entities.repository import RepositoryConfig
from issuechat.domain.entities.result import Result
from issuechat.domain.repositories.issue_tracker import IssueTracker
from issuechat.domain.repositories.message_repository import MessageRepository
from issuechat.infrastructure.event_bus import EventBus


class ChatRoom:
    """Application facade owned by the composing application.

    Starts the first sync, keeps polling according to the sync settings and
    applies reconfiguration. Presentation code reads views from here and
    subscribes to the event bus for changes.
    """

    def __init__(
        self,
        sync_engine: SyncEngine,
        supervisor: ConnectionSupervisor,
        tracker: IssueTracker,
        message_repository: MessageRepository,
        event_bus: EventBus,
        logger: BoundLogger,
        sync_interval: float = 30.0,
        auto_sync: bool = True,
        api_key: str | None = None,
    ) -> None:
        """Initialize the chat room.

        Args:
            sync_engine: Engine syncing the repository.
            supervisor: Connection supervisor.
            tracker: Issue tracker, used to switch API keys.
            message_repository: Repository holding the current snapshot.
            event_bus: Bus carrying chat events.
            logger: Logger instance.
            sync_interval: Seconds between automatic syncs.
            auto_sync: Whether to poll periodically.
            api_key: API key currently set on the tracker.
        """
        self._sync_engine = sync_engine
        self._supervisor = supervisor
        self._tracker = tracker
        self._messages = message_repository
        self._event_bus = event_bus
        self._logger = logger
        self._sync_interval = sync_interval
        self._auto_sync = auto_sync
        self._api_key = api_key
        self._last_error: str | None = None
        self._unsubscribe = event_bus.subscribe(self._on_event)

    @property
    def status(self) -> ConnectionStatus:
        return self._supervisor.status

    @property
    def supervisor(self) -> ConnectionSupervisor:
        return self._supervisor

    @property
    def repository(self) -> RepositoryConfig:
        return self._sync_engine.repository_config

    @property
    def snapshot(self) -> Snapshot:
        return self._messages.snapshot

    @property
    def last_error(self) -> str | None:
        """Return the last background error, cleared by the next good sync."""
        return self._last_error

    @property
    def sync_interval(self) -> float:
        return self._sync_interval

    @property
    def auto_sync(self) -> bool:
        return self._auto_sync

    def _on_event(self, event: Event) -> None:
        if isinstance(event, SyncCompletedEvent):
            self._last_error = None
            if self._supervisor.status in (
                ConnectionStatus.DISCONNECTED,
                ConnectionStatus.ERROR,
            ):
                self._supervisor.set_connected(True)
        elif isinstance(event, ErrorEvent):
            self._last_error = event.message

    async def start(self) -> Result[Snapshot]:
        """Run the initial sync and start polling.

        A failed initial sync hands over to the supervisor, which keeps
        retrying with backoff.

        Returns:
            The result of the initial sync.
        """
        self._logger.info(
            "Starting chat room",
            repository=self.repository.slug,
            auto_sync=self._auto_sync,
            interval=self._sync_interval,
        )
        self._supervisor.start()
        result = await self._sync_engine.sync_once()
        if not result.ok:
            await self._supervisor.reconnect()
        if self._auto_sync:
            self._sync_engine.start_periodic(self._sync_interval)
        return result

    async def sync(self) -> Result[Snapshot]:
        """Sync now."""
        return await self._sync_engine.sync_once()

    async def send_message(
        self, title: str, content: str, tags: list[str] | None = None
    ) -> Result[Message]:
        """Create a message in the repository."""
        return await self._sync_engine.send_message(title, content, tags or [])

    def view(self, query: MessageQuery | None = None) -> Snapshot:
        """Return the current snapshot searched, filtered and sorted."""
        return apply_query(self._messages.snapshot, query or MessageQuery())

    def get_message(self, message_id: int) -> Message | None:
        return self._messages.get_by_id(message_id)

    def stats(self) -> MessageStats:
        return message_stats(self._messages.snapshot)

    async def reconfigure(
        self,
        repository: str | None = None,
        api_key: str | None | EllipsisType = ...,
    ) -> Result[Snapshot] | None:
        """Switch repository and/or API key, then reconnect and sync.

        Args:
            repository: New `owner/name` slug, None to keep the current one.
            api_key: New API key, None to clear it, omitted to keep it.

        Returns:
            The result of the follow-up sync, or None when nothing changed.

        Raises:
            ValueError: If the repository slug is malformed.
        """
        changed = False

        if repository is not None:
            current = self._sync_engine.repository_config
            target = RepositoryConfig.from_slug(repository, current.labels)
            if target != current:
                self._sync_engine.set_repository(target)
                changed = True

        if not isinstance(api_key, EllipsisType):
            new_key = api_key or None
            if new_key != self._api_key:
                self._api_key = new_key
                self._tracker.set_api_key(new_key)
                self._logger.info("API key updated", has_api_key=new_key is not None)
                changed = True

        if not changed:
            return None

        await self._supervisor.force_reconnect()
        # Waits out a sync still running against the previous settings
        return await self._sync_engine.sync_after_current()

    def update_sync_settings(
        self, interval: float | None = None, auto_sync: bool | None = None
    ) -> None:
        """Change the polling interval and/or toggle polling.

        Raises:
            ValueError: If interval is not positive.
        """
        if interval is not None:
            if interval <= 0:
                raise ValueError(f"Sync interval must be positive, got {interval}")
            self._sync_interval = interval
        if auto_sync is not None:
            self._auto_sync = auto_sync

        if self._auto_sync:
            self._sync_engine.start_periodic(self._sync_interval)
        else:
            self._sync_engine.stop_periodic()

    async def close(self) -> None:
        """Cancel every timer and detach from the event bus."""
        self._unsubscribe()
        await self._sync_engine.close()
        await self._supervisor.close()
        self._logger.info("Chat room closed")
