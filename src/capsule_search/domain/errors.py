"""Domain errors raised by the search core.

Callers (handler layers) map these to their own status codes.
"""


class CapsuleSearchError(Exception):
    """Base error for the capsule search domain."""


class InvalidQueryError(CapsuleSearchError, ValueError):
    """Raised when a query is empty after trimming or exceeds the length cap."""


class IndexUnavailableError(CapsuleSearchError, RuntimeError):
    """Raised when searching against an index that was never built."""


class CollaboratorFailureError(CapsuleSearchError):
    """Raised when the capsule store fails during a cross-capsule search.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, user_id: str | None = None) -> None:
        super().__init__(message)
        self.user_id = user_id


class SearchTimeoutError(CapsuleSearchError, TimeoutError):
    """Raised when a cross-capsule search exceeds its deadline."""
