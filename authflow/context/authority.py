from __future__ import annotations

from typing import Awaitable, Callable, Protocol

from authflow.context.cancellation import CancellationToken

# Handlers always receive the subject id, then the cancellation token.
OutcomeHandler = Callable[[str, CancellationToken], Awaitable[None]]
ExceptionHandler = Callable[[Exception, str, CancellationToken], Awaitable[None]]


class PermissionAuthority(Protocol):
    """
    Answers "does subject X hold permission P?".

    Implementations may raise, and should observe `token` while waiting on I/O
    (raising `OperationCancelledError` when they give up because of it).
    """

    async def verify(self, subject_id: str, permission: str, token: CancellationToken) -> bool:
        """
        Return True when `subject_id` holds `permission`.
        """
