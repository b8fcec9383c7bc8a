"""Error taxonomy shared by the synchronization core."""


class SyncError(Exception):
    """Base exception for sync, write and connection failures."""


class SyncBusyError(SyncError):
    """Raised when a sync is requested while another one is in flight.

    This is a no-op signal rather than a failure: no event is published.
    """

    def __init__(self, message: str = "Sync already in progress") -> None:
        super().__init__(message)


class TransportError(SyncError):
    """Raised when the issue tracker cannot be reached or answers with an error.

    Attributes:
        status: HTTP status code, if the failure came from an HTTP response.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AuthError(SyncError):
    """Raised when the tracker denies read or write access to the repository."""


class InvalidInputError(SyncError):
    """Raised when local input is malformed, e.g. an empty message title."""


class StaleSyncError(SyncError):
    """Raised when the repository changed while a sync was in flight.

    The fetched data belongs to the previous repository and is discarded.
    """

    def __init__(
        self, message: str = "Repository changed during sync, result discarded"
    ) -> None:
        super().__init__(message)
