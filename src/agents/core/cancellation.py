"""
Cancellation token threaded through every suspension point of a pipeline run
(gateway reads, repository queries). A caller can abort a stuck run with
cancel(), or arm a deadline with cancel_after().
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class OperationCancelled(Exception):
    """Raised at a suspension point once the token has fired."""

    def __init__(self, reason: str = "cancelled"):
        super().__init__(reason)
        self.reason = reason


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    def cancel_after(self, seconds: float) -> None:
        """Fire the token after `seconds`. Must be called from a running loop."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(seconds, self.cancel, f"timed out after {seconds:g}s")

    def dispose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise OperationCancelled(self.reason or "cancelled")

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable`, abandoning it as soon as the token fires.
        The abandoned task is cancelled and OperationCancelled is raised instead.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelled(self.reason or "cancelled")
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise OperationCancelled(self.reason or "cancelled")


async def guarded(cancel: Optional[CancellationToken], awaitable: Awaitable[T]) -> T:
    """Await through the token when one is given, plainly otherwise."""
    if cancel is None:
        return await awaitable
    return await cancel.guard(awaitable)


def token_with_timeout(seconds: Optional[float]) -> CancellationToken:
    token = CancellationToken()
    if seconds:
        token.cancel_after(seconds)
    return token


__all__ = [
    "CancellationToken",
    "OperationCancelled",
    "guarded",
    "token_with_timeout",
]
