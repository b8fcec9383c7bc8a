"""Result type for operations that report failure to the caller."""

from dataclasses import dataclass
from typing import Generic, TypeVar, cast

from issuechat.domain.exceptions import SyncError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a sync or write operation.

    Exactly one of `value` and `error` is set.
    """

    value: T | None = None
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        """Return True if the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SyncError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the error.

        Raises:
            SyncError: If the operation failed.
        """
        if self.error is not None:
            raise self.error
        return cast(T, self.value)
