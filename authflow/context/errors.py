from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional, Tuple


class ConfigurationIssue(str, Enum):
    ALREADY_CONFIGURED = "already_configured"
    INVALID_VALUE = "invalid_value"
    MISSING = "missing"


class ConfigurationError(Exception):
    """
    Programming-time misuse of a UserContext (duplicate, invalid or missing setup).

    Always raised straight to the caller; never routed to the exception handler.
    """

    def __init__(self, message: str, *, issue: ConfigurationIssue, slots: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.issue = issue
        self.slots: Tuple[str, ...] = tuple(slots)


class OperationCancelledError(Exception):
    """Raised when a cancellation token is observed in the cancelled state."""

    def __init__(self, message: str = "The operation was cancelled.", *, token: Optional[Any] = None) -> None:
        super().__init__(message)
        self.token = token
