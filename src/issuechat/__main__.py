"""Application entry point for issuechat."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from issuechat.application.services.chat_room import ChatRoom
from issuechat.application.services.connection_supervisor import (
    ConnectionSupervisor,
)
from issuechat.application.services.sync_engine import SyncEngine
from issuechat.config import (
    AppConfig,
    ConfigError,
    ConfigFileNotFoundError,
    load_config,
)
from issuechat.domain.entities.event import ErrorEvent, Event, EventType
from issuechat.domain.entities.issue import ListOptions
from issuechat.infrastructure import EventBus, InMemoryMessageRepository
from issuechat.infrastructure.github import GitHubIssueTracker
from issuechat.infrastructure.logging import get_logger, setup_logging
from issuechat.presentation.http.server import HTTPServer

# Shutdown timeout in seconds
SHUTDOWN_TIMEOUT = 30


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="issuechat - chat room backed by repository issues"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to configuration file (default: config.yaml)",
    )
    return parser.parse_args(args)


def log_event(logger: BoundLogger, event: Event) -> None:
    """Event bus subscriber writing every chat event to the log."""
    if isinstance(event, ErrorEvent):
        logger.warning("Chat error", message=event.message, cause=event.cause)
    elif event.type is EventType.MESSAGE_ADDED:
        logger.info("Message added", event_id=event.id)
    else:
        logger.debug("Chat event", event_id=event.id, event_type=event.type.value)


def build_chat_room(
    config: AppConfig, tracker: GitHubIssueTracker, event_bus: EventBus
) -> ChatRoom:
    """Wire the sync engine, supervisor and chat room from configuration."""
    message_repository = InMemoryMessageRepository()
    sync_engine = SyncEngine(
        tracker=tracker,
        message_repository=message_repository,
        event_bus=event_bus,
        repository_config=config.repository_config(),
        logger=get_logger("sync"),
        list_options=ListOptions(page_size=config.github.page_size),
    )
    supervisor = ConnectionSupervisor(
        tracker=tracker,
        sync_engine=sync_engine,
        logger=get_logger("connection"),
        heartbeat_interval=config.connection.heartbeat_interval,
        health_window=config.connection.health_window,
        backoff_base=config.connection.backoff_base,
        backoff_cap=config.connection.backoff_cap,
    )
    return ChatRoom(
        sync_engine=sync_engine,
        supervisor=supervisor,
        tracker=tracker,
        message_repository=message_repository,
        event_bus=event_bus,
        logger=get_logger("chat_room"),
        sync_interval=config.sync.sync_interval_seconds,
        auto_sync=config.sync.auto_sync,
        api_key=config.sync.api_key,
    )


async def main_async(
    config_path: Path,
    shutdown_timeout: float = SHUTDOWN_TIMEOUT,
) -> int:
    """Async main function.

    Args:
        config_path: Path to configuration file.
        shutdown_timeout: Maximum time in seconds to wait for graceful shutdown.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    # 1. Load configuration
    config = load_config(config_path)

    # 2. Initialize logging
    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info(
        "Starting issuechat",
        config_path=str(config_path),
        repository=config.sync.repository,
    )

    # 3. Initialize components
    event_bus = EventBus(logger=get_logger("event_bus"))
    event_logger = get_logger("events")
    event_bus.subscribe(lambda event: log_event(event_logger, event))
    tracker = GitHubIssueTracker(
        config=config.github,
        logger=get_logger("github"),
        api_key=config.sync.api_key,
    )
    chat_room = build_chat_room(config, tracker, event_bus)
    http_server = HTTPServer(
        config=config.server,
        chat_room=chat_room,
        logger=get_logger("http_server"),
    )

    # 4. Setup shutdown handling
    shutdown_event = asyncio.Event()

    def signal_handler(sig: signal.Signals) -> None:
        logger.info("Received signal, initiating shutdown", signal=sig.name)
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    try:
        # 5. Start serving and syncing
        await http_server.start()
        await chat_room.start()
        logger.info("issuechat started successfully")

        # 6. Run until a shutdown signal arrives
        await shutdown_event.wait()

    except asyncio.CancelledError:
        logger.info("Main task cancelled")

    finally:
        # 7. Shutdown
        logger.info("Shutting down")
        try:
            await asyncio.wait_for(
                _shutdown(http_server, chat_room, tracker, event_bus),
                timeout=shutdown_timeout,
            )
            logger.info("issuechat stopped")
        except TimeoutError:
            logger.warning(
                "Shutdown timed out, forcing termination",
                timeout_seconds=shutdown_timeout,
            )

    return 0


async def _shutdown(
    http_server: HTTPServer,
    chat_room: ChatRoom,
    tracker: GitHubIssueTracker,
    event_bus: EventBus,
) -> None:
    await http_server.stop()
    await chat_room.close()
    await tracker.close()
    event_bus.clear()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    config_path = args.config

    try:
        exit_code = asyncio.run(main_async(config_path))
        sys.exit(exit_code)
    except ConfigFileNotFoundError:
        print(f"Error: {config_path} not found", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Configuration validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
