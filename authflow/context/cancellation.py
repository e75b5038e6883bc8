"""
Cooperative cancellation signal.

The signal is an explicit value passed down the call chain (never ambient state):
- `CancellationSource` owns the state and is the only thing that can cancel.
- `CancellationToken` is the read view handed to authorities and handlers.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, List, Optional

from authflow.context.errors import OperationCancelledError

logger = logging.getLogger(__name__)


class CancellationToken:
    def __init__(self, source: Optional["CancellationSource"] = None) -> None:
        self._source = source

    @staticmethod
    def none() -> "CancellationToken":
        """A token that can never be cancelled."""
        return _NONE_TOKEN

    @property
    def can_be_cancelled(self) -> bool:
        return self._source is not None

    @property
    def is_cancellation_requested(self) -> bool:
        return self._source is not None and self._source.is_cancellation_requested

    def raise_if_cancellation_requested(self) -> None:
        if self.is_cancellation_requested:
            raise OperationCancelledError(token=self)

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Run `callback` once cancellation is requested.

        Runs immediately when the token is already cancelled. Returns a callable that
        unregisters the callback (a no-op once it has run).
        """
        if self._source is None:
            return _noop
        return self._source._register(callback)

    async def wait(self) -> None:
        """
        Suspend until cancellation is requested. Never returns for `none()`.

        Safe when the source is cancelled from another thread: the wake-up is handed
        to the waiting loop.
        """
        if self.is_cancellation_requested:
            return
        loop = asyncio.get_running_loop()
        event = asyncio.Event()

        def _wake() -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(event.set)

        unregister = self.register(_wake)
        try:
            await event.wait()
        finally:
            unregister()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancellation_requested})"


def _noop() -> None:
    return None


_NONE_TOKEN = CancellationToken()


class CancellationSource:
    """
    Owner of a cancellation signal.

    Example:
        source = CancellationSource()
        source.cancel_after(5.0)  # deadline-bound token
        await ctx.execute(source.token)

        with CancellationSource.linked(shutdown_token) as request_source:
            await ctx.execute(request_source.token)

    A linked source holds a registration on each parent token until `close()`
    (or the end of the `with` block) releases it.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: List[Callable[[], None]] = []
        self._token = CancellationToken(self)
        self._parent_registrations: List[Callable[[], None]] = []

    @classmethod
    def linked(cls, *tokens: CancellationToken) -> "CancellationSource":
        """Create a source that is cancelled as soon as any of `tokens` is."""
        source = cls()
        for token in tokens:
            source._parent_registrations.append(token.register(source.cancel))
        return source

    def close(self) -> None:
        """Release the registrations held on parent tokens. Idempotent."""
        registrations, self._parent_registrations = self._parent_registrations, []
        for unregister in registrations:
            unregister()

    def __enter__(self) -> "CancellationSource":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        # Every callback runs even if an earlier one raises; the first error is re-raised.
        errors: List[Exception] = []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                errors.append(e)
        if errors:
            for extra in errors[1:]:
                logger.warning("Cancellation callback failed: %s: %s", type(extra).__name__, extra)
            raise errors[0]

    def cancel_after(self, delay_seconds: float) -> asyncio.TimerHandle:
        """Schedule `cancel()` on the running event loop after `delay_seconds`."""
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        loop = asyncio.get_running_loop()
        return loop.call_later(delay_seconds, self.cancel)

    def _register(self, callback: Callable[[], None]) -> Callable[[], None]:
        if self._cancelled:
            callback()
            return _noop
        self._callbacks.append(callback)

        def _unregister() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unregister
