"""HTTP server exposing chat room views and triggers."""

import json
from datetime import datetime, timezone
from typing import Any

import structlog
from aiohttp import web
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from issuechat.application.query import (
    active_authors,
    available_authors,
    available_tags,
)
from issuechat.application.services.chat_room import ChatRoom
from issuechat.config.models import ServerConfig
from issuechat.domain.entities.message import Message
from issuechat.domain.entities.query import (
    CommentFilter,
    DateRange,
    FilterSpec,
    MessageQuery,
    SortMode,
)
from issuechat.domain.entities.repository import RepositoryConfig
from issuechat.domain.exceptions import (
    InvalidInputError,
    StaleSyncError,
    SyncBusyError,
)

BOOLEAN_VALUES = {"true": True, "1": True, "false": False, "0": False}


class QueryParameterError(ValueError):
    """Raised when a query string parameter cannot be parsed."""


EARLIEST = datetime.min.replace(tzinfo=timezone.utc)
LATEST = datetime.max.replace(tzinfo=timezone.utc)


def _parse_datetime(name: str, value: str) -> datetime:
    """Parse an ISO 8601 timestamp, treating naive values as UTC."""
    try:
        moment = datetime.fromisoformat(value)
    except ValueError as e:
        raise QueryParameterError(f"Invalid {name}: {value}") from e
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def parse_message_query(params: Any) -> MessageQuery:
    """Build a MessageQuery from request query parameters.

    Recognized parameters: q, author, tags (comma separated), has_comments
    (true/false), since, until (ISO 8601) and sort (newest/oldest/popular).

    Raises:
        QueryParameterError: If a parameter is invalid.
    """
    has_comments = CommentFilter.UNSET
    if "has_comments" in params:
        flag = BOOLEAN_VALUES.get(params["has_comments"].lower())
        if flag is None:
            raise QueryParameterError(
                f"Invalid has_comments: {params['has_comments']}"
            )
        has_comments = CommentFilter.from_flag(flag)

    date_range = None
    if "since" in params or "until" in params:
        start = EARLIEST
        end = LATEST
        if "since" in params:
            start = _parse_datetime("since", params["since"])
        if "until" in params:
            end = _parse_datetime("until", params["until"])
        try:
            date_range = DateRange(start=start, end=end)
        except ValidationError as e:
            raise QueryParameterError("Invalid date range") from e

    sort = params.get("sort", SortMode.NEWEST.value)
    try:
        sort_mode = SortMode(sort)
    except ValueError as e:
        raise QueryParameterError(f"Invalid sort: {sort}") from e

    tags = frozenset(
        tag.strip() for tag in params.get("tags", "").split(",") if tag.strip()
    )
    return MessageQuery(
        search=params.get("q", ""),
        filters=FilterSpec(
            author=params.get("author", ""),
            tags=tags,
            has_comments=has_comments,
            date_range=date_range,
        ),
        sort=sort_mode,
    )


def _serialize(message: Message) -> dict[str, Any]:
    return message.model_dump(mode="json")


class SettingsUpdate(BaseModel):
    """Body of PATCH /api/v1/settings. Omitted fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    repository: str | None = None
    api_key: str | None = None
    sync_interval_seconds: float | None = Field(default=None, gt=0)
    auto_sync: bool | None = None

    @field_validator("repository")
    @classmethod
    def _check_slug(cls, value: str | None) -> str | None:
        if value is not None:
            RepositoryConfig.from_slug(value)
        return value


class HTTPServer:
    """HTTP server for the chat room.

    This server provides endpoints for:
    - GET /healthz: Liveness probe with connection health
    - GET /api/v1/messages: Searched, filtered and sorted messages
    - GET /api/v1/messages/{message_id}: A single message
    - POST /api/v1/messages: Send a message
    - POST /api/v1/sync: Sync now
    - POST /api/v1/reconnect: Force a reconnect
    - GET /api/v1/stats: Snapshot statistics and recently active authors
    - PATCH /api/v1/settings: Change repository, API key or polling

    Args:
        config: Server configuration containing host and port.
        chat_room: Chat room serving the data.
        logger: Structured logger for logging.
    """

    def __init__(
        self,
        config: ServerConfig,
        chat_room: ChatRoom,
        logger: structlog.stdlib.BoundLogger,
    ) -> None:
        self.config = config
        self._chat_room = chat_room
        self._logger = logger
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    @property
    def is_running(self) -> bool:
        """Return True if the server is running."""
        return self._site is not None

    def create_app(self) -> web.Application:
        """Create and return the aiohttp Application.

        This method is exposed for testing purposes.
        """
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health_check)
        app.router.add_get("/api/v1/messages", self._handle_list_messages)
        app.router.add_post("/api/v1/messages", self._handle_send_message)
        app.router.add_get(
            "/api/v1/messages/{message_id}", self._handle_get_message
        )
        app.router.add_post("/api/v1/sync", self._handle_sync)
        app.router.add_post("/api/v1/reconnect", self._handle_reconnect)
        app.router.add_get("/api/v1/stats", self._handle_stats)
        app.router.add_patch("/api/v1/settings", self._handle_update_settings)
        return app

    async def start(self) -> None:
        """Start the HTTP server."""
        self._runner = web.AppRunner(self.create_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()
        self._logger.info(
            "HTTP server started", host=self.config.host, port=self.config.port
        )

    async def stop(self) -> None:
        """Stop the HTTP server."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            self._logger.info("HTTP server stopped")

    async def _handle_health_check(self, request: web.Request) -> web.Response:
        """Handle GET /healthz requests."""
        supervisor = self._chat_room.supervisor
        return web.json_response(
            {
                "status": "ok",
                "connection": supervisor.status.value,
                "healthy": supervisor.is_healthy(),
                "reconnect_attempts": supervisor.reconnect_attempts,
                "error": self._chat_room.last_error,
            }
        )

    async def _handle_list_messages(self, request: web.Request) -> web.Response:
        """Handle GET /api/v1/messages requests."""
        try:
            query = parse_message_query(request.query)
        except QueryParameterError as e:
            return web.json_response({"error": str(e)}, status=400)

        messages = self._chat_room.view(query)
        return web.json_response(
            {"messages": [_serialize(m) for m in messages], "count": len(messages)}
        )

    async def _handle_get_message(self, request: web.Request) -> web.Response:
        """Handle GET /api/v1/messages/{message_id} requests."""
        try:
            message_id = int(request.match_info["message_id"])
        except ValueError:
            return web.json_response({"error": "Invalid message id"}, status=400)

        message = self._chat_room.get_message(message_id)
        if message is None:
            return web.json_response({"error": "Message not found"}, status=404)
        return web.json_response(_serialize(message))

    async def _handle_send_message(self, request: web.Request) -> web.Response:
        """Handle POST /api/v1/messages requests."""
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return web.json_response({"error": "Invalid JSON"}, status=400)

        if not isinstance(body, dict) or "title" not in body:
            return web.json_response(
                {"error": "Missing required field: title"}, status=400
            )

        tags = body.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            return web.json_response(
                {"error": "Field tags must be a list of strings"}, status=400
            )

        result = await self._chat_room.send_message(
            str(body["title"]), str(body.get("content", "")), tags
        )
        if isinstance(result.error, InvalidInputError):
            return web.json_response({"error": str(result.error)}, status=400)
        if result.error is not None:
            return web.json_response({"error": str(result.error)}, status=502)

        return web.json_response(_serialize(result.unwrap()), status=201)

    async def _handle_sync(self, request: web.Request) -> web.Response:
        """Handle POST /api/v1/sync requests."""
        result = await self._chat_room.sync()
        if isinstance(result.error, (SyncBusyError, StaleSyncError)):
            return web.json_response({"error": str(result.error)}, status=409)
        if result.error is not None:
            return web.json_response({"error": str(result.error)}, status=502)
        return web.json_response({"count": len(result.unwrap())})

    async def _handle_reconnect(self, request: web.Request) -> web.Response:
        """Handle POST /api/v1/reconnect requests."""
        status = await self._chat_room.supervisor.force_reconnect()
        return web.json_response({"connection": status.value})

    async def _handle_stats(self, request: web.Request) -> web.Response:
        """Handle GET /api/v1/stats requests."""
        snapshot = self._chat_room.snapshot
        return web.json_response(
            {
                **self._chat_room.stats().model_dump(),
                "authors": available_authors(snapshot),
                "tags": available_tags(snapshot),
                "active_authors": [
                    author.model_dump(mode="json")
                    for author in active_authors(snapshot, datetime.now(timezone.utc))
                ],
            }
        )

    async def _handle_update_settings(self, request: web.Request) -> web.Response:
        """Handle PATCH /api/v1/settings requests."""
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return web.json_response({"error": "Invalid JSON"}, status=400)

        try:
            update = SettingsUpdate.model_validate(body)
        except ValidationError as e:
            return web.json_response(
                {"error": f"Invalid settings: {e.error_count()} error(s)"}, status=400
            )

        room = self._chat_room
        if update.sync_interval_seconds is not None or update.auto_sync is not None:
            room.update_sync_settings(
                interval=update.sync_interval_seconds, auto_sync=update.auto_sync
            )

        if "api_key" in update.model_fields_set:
            await room.reconfigure(repository=update.repository, api_key=update.api_key)
        else:
            await room.reconfigure(repository=update.repository)

        self._logger.info("Settings updated", fields=sorted(update.model_fields_set))
        return web.json_response(
            {
                "repository": room.repository.slug,
                "sync_interval_seconds": room.sync_interval,
                "auto_sync": room.auto_sync,
                "connection": room.status.value,
            }
        )
