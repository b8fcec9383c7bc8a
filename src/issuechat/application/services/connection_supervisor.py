"""Connection supervisor tracking reachability of the synced repository."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum

from structlog.stdlib import BoundLogger

from issuechat.application.services.backoff import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_DELAY,
    delay_for_attempt,
)
from issuechat.application.services.sync_engine import SyncEngine, utcnow
from issuechat.domain.exceptions import AuthError, SyncError
from issuechat.domain.repositories.issue_tracker import IssueTracker

DEFAULT_HEARTBEAT_INTERVAL = 30.0
DEFAULT_HEALTH_WINDOW = 60.0


class ConnectionStatus(str, Enum):
    """Connection state."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class ConnectionSupervisor:
    """State machine driving reconnection with exponential backoff.

    Runs independently of the polling cadence. Owns two timers: the pending
    reconnect retry and the heartbeat. A failed reconnect always schedules
    another one until it succeeds, `force_reconnect` is called, the
    connection is externally reported, or the supervisor is closed.
    """

    def __init__(
        self,
        tracker: IssueTracker,
        sync_engine: SyncEngine,
        logger: BoundLogger,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        health_window: float = DEFAULT_HEALTH_WINDOW,
        backoff_base: float = DEFAULT_BASE_DELAY,
        backoff_cap: float = DEFAULT_MAX_DELAY,
        initially_connected: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the supervisor.

        Args:
            tracker: Issue tracker used for access validation.
            sync_engine: Engine synced once after each successful reconnect.
            logger: Logger instance.
            heartbeat_interval: Seconds between heartbeats while connected.
            health_window: Maximum heartbeat age in seconds for a healthy
                connection.
            backoff_base: Retry delay in seconds after the first failure.
            backoff_cap: Maximum retry delay in seconds.
            initially_connected: Whether the connection is already known to
                be up.
            clock: Source of the current time.
        """
        self._tracker = tracker
        self._sync_engine = sync_engine
        self._logger = logger
        self._heartbeat_interval = heartbeat_interval
        self._health_window = timedelta(seconds=health_window)
        self._backoff_base = backoff_base
        self._backoff_cap = backoff_cap
        self._clock = clock

        self._status = (
            ConnectionStatus.CONNECTED
            if initially_connected
            else ConnectionStatus.DISCONNECTED
        )
        self._reconnect_attempts = 0
        self._last_heartbeat: datetime | None = None
        self._next_retry_delay: float | None = None
        self._retry_task: asyncio.Task[None] | None = None
        # Retry task whose reconnect is currently running
        self._running_retry: asyncio.Task[None] | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        # Bumped by every reconnect, external signal and close; stale
        # attempts compare against it and drop their outcome.
        self._generation = 0
        self._closed = False

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def last_heartbeat(self) -> datetime | None:
        return self._last_heartbeat

    @property
    def retry_pending(self) -> bool:
        """Return True if a reconnect retry is scheduled."""
        return self._retry_task is not None and not self._retry_task.done()

    @property
    def next_retry_delay(self) -> float | None:
        """Return the delay of the most recently scheduled retry."""
        return self._next_retry_delay

    def start(self) -> None:
        """Start the heartbeat if the connection is already up."""
        if self._status is ConnectionStatus.CONNECTED:
            self.start_heartbeat()

    async def reconnect(self) -> ConnectionStatus:
        """Validate access and sync, or schedule a retry on failure.

        Returns:
            The resulting connection status. A closed supervisor does
            nothing and returns its current status.
        """
        if self._closed:
            self._logger.debug("Reconnect ignored, supervisor closed")
            return self._status

        self._cancel_retry()
        self._generation += 1
        generation = self._generation

        attempt = self._reconnect_attempts
        self._reconnect_attempts += 1
        self._status = ConnectionStatus.CONNECTING

        repo = self._sync_engine.repository_config
        self._logger.info(
            "Reconnecting", repository=repo.slug, attempt=self._reconnect_attempts
        )

        try:
            report = await self._tracker.validate_access(repo.owner, repo.name)
            if not report.granted:
                raise AuthError(report.error or "Repository access denied")
        except Exception as e:
            if generation != self._generation:
                return self._status

            self._status = ConnectionStatus.ERROR
            self.stop_heartbeat()
            delay = delay_for_attempt(attempt, self._backoff_base, self._backoff_cap)
            self._logger.warning(
                "Reconnect failed",
                repository=repo.slug,
                attempt=self._reconnect_attempts,
                delay=delay,
                error=str(e),
                exc_info=not isinstance(e, SyncError),
            )
            self._schedule_retry(delay)
            return self._status

        if generation != self._generation:
            return self._status

        self._status = ConnectionStatus.CONNECTED
        self._reconnect_attempts = 0
        self._next_retry_delay = None
        self.start_heartbeat()
        self._logger.info("Connected", repository=repo.slug)

        await self._sync_engine.sync_once()
        return self._status

    async def force_reconnect(self) -> ConnectionStatus:
        """Reconnect now, dropping any pending retry and the backoff state."""
        self._cancel_retry()
        self._reconnect_attempts = 0
        self._logger.info("Forced reconnect requested")
        return await self.reconnect()

    def set_connected(self, connected: bool) -> None:
        """Apply an external connectivity signal.

        Moves straight to `connected` or `disconnected` without passing
        through `connecting`, and starts or stops the heartbeat accordingly.

        Args:
            connected: Whether the connection is currently up.
        """
        if self._closed:
            return

        self._generation += 1
        self._cancel_retry()
        self._next_retry_delay = None

        if connected:
            if self._status in (ConnectionStatus.DISCONNECTED, ConnectionStatus.ERROR):
                self._reconnect_attempts = 0
            self._status = ConnectionStatus.CONNECTED
            self.start_heartbeat()
        else:
            self._status = ConnectionStatus.DISCONNECTED
            self.stop_heartbeat()

        self._logger.info("Connectivity signal received", status=self._status.value)

    def _schedule_retry(self, delay: float) -> None:
        if self._closed:
            return
        self._next_retry_delay = delay
        self._retry_task = asyncio.create_task(self._retry_after(delay))

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        # Detach before reconnecting so reconnect() does not cancel this task
        self._retry_task = None
        self._running_retry = asyncio.current_task()
        try:
            await self.reconnect()
        finally:
            if self._running_retry is asyncio.current_task():
                self._running_retry = None

    def _cancel_retry(self) -> None:
        task = self._retry_task
        self._retry_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def start_heartbeat(self) -> None:
        """Stamp a heartbeat now and then every heartbeat interval."""
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
        self._last_heartbeat = self._clock()
        self._heartbeat_task = asyncio.create_task(self._beat())

    async def _beat(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            self._last_heartbeat = self._clock()

    def stop_heartbeat(self) -> None:
        """Stop the heartbeat and forget the last one. Safe to call repeatedly."""
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None
        self._last_heartbeat = None

    def is_healthy(self) -> bool:
        """Return True if the last heartbeat is within the health window."""
        if self._last_heartbeat is None:
            return False
        return self._clock() - self._last_heartbeat < self._health_window

    async def close(self) -> None:
        """Cancel the retry and heartbeat timers and wait for them.

        A retry whose reconnect is still running is cancelled too. After
        close, reconnects and connectivity signals are ignored.
        """
        self._closed = True
        self._generation += 1
        tasks = [
            task
            for task in (self._retry_task, self._running_retry, self._heartbeat_task)
            if task is not None and task is not asyncio.current_task()
        ]
        self._running_retry = None
        self._cancel_retry()
        self.stop_heartbeat()
        for task in tasks:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
