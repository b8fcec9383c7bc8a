"""Tests for InMemoryMessageRepository."""

from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from issuechat.domain.entities.message import Message
from issuechat.infrastructure.persistence import InMemoryMessageRepository

SYNCED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

MessageFactory = Callable[..., Message]


class TestInMemoryMessageRepository:
    """Tests for InMemoryMessageRepository."""

    def test_starts_empty(self) -> None:
        repository = InMemoryMessageRepository()

        assert repository.snapshot == ()
        assert repository.synced_at is None
        assert len(repository) == 0

    def test_replace_stores_snapshot(self, make_message: MessageFactory) -> None:
        repository = InMemoryMessageRepository()
        snapshot = (make_message(2), make_message(1))

        repository.replace(snapshot, SYNCED_AT)

        assert repository.snapshot == snapshot
        assert repository.synced_at == SYNCED_AT
        assert len(repository) == 2

    def test_replace_discards_previous_snapshot(
        self, make_message: MessageFactory
    ) -> None:
        repository = InMemoryMessageRepository()
        repository.replace((make_message(1), make_message(2)), SYNCED_AT)

        repository.replace((make_message(3),), SYNCED_AT)

        assert [m.id for m in repository.snapshot] == [3]
        assert repository.get_by_id(1) is None

    def test_get_by_id(self, make_message: MessageFactory) -> None:
        repository = InMemoryMessageRepository()
        message = make_message(7, title="Seven")
        repository.replace((message,), SYNCED_AT)

        assert repository.get_by_id(7) == message
        assert repository.get_by_id(8) is None

    def test_duplicate_ids_rejected(self, make_message: MessageFactory) -> None:
        repository = InMemoryMessageRepository()
        original = (make_message(1),)
        repository.replace(original, SYNCED_AT)

        with pytest.raises(ValueError):
            repository.replace((make_message(2), make_message(2)), SYNCED_AT)

        assert repository.snapshot == original

    def test_snapshot_taken_before_replace_is_unchanged(
        self, make_message: MessageFactory
    ) -> None:
        repository = InMemoryMessageRepository()
        repository.replace((make_message(1),), SYNCED_AT)
        held = repository.snapshot

        repository.replace((make_message(2),), SYNCED_AT)

        assert [m.id for m in held] == [1]
