"""Error taxonomy shared by the transport, the resilience pipeline and the
command handlers.

Retry decisions read the ``retryable`` flag carried by the error instead of
dispatching on the exception class.
"""

from typing import List, Optional, Tuple

RETRYABLE_STATUS_CODES = frozenset({429})


class ClassifiedError(Exception):
    """Base error carrying its own retry classification."""

    def __init__(self, message: str, retryable: bool = False, status_code: Optional[int] = None):
        self.message = message
        self.retryable = retryable
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"retryable={self.retryable}, status_code={self.status_code})"
        )


class ValidationError(ClassifiedError):
    """Malformed caller input. Never retried."""

    def __init__(self, issues: List[Tuple[str, str]]):
        self.issues = issues
        summary = "; ".join(f"{field}: {message}" for field, message in issues)
        super().__init__(f"Invalid arguments: {summary}", retryable=False)


class TransportError(ClassifiedError):
    """Failure talking to the upstream API."""

    @classmethod
    def from_status(cls, status_code: int, message: str) -> "TransportError":
        return cls(message, retryable=is_retryable_status(status_code), status_code=status_code)


class RateLimitInternalError(Exception):
    """The rate limiter broke its own invariant. Indicates a programming error."""


def is_retryable_status(status_code: int) -> bool:
    """5xx and 429 are transient, every other 4xx is terminal."""
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES
