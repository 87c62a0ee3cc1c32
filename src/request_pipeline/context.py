import asyncio
import time
from typing import Awaitable, TypeVar

from core.exceptions import RequestCancelledError


T = TypeVar("T")


class CallContext:
    """
    Cancellable context of one logical call.

    A context can be cancelled explicitly or expire at an optional deadline.
    Both suspension points of a call (the backoff wait and the in-flight
    transport round trip) race against it and return promptly once it is done.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._deadline: float | None = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout

    def cancel(self, reason: str = "call cancelled") -> None:
        if self._reason is None:
            self._reason = reason
        self._event.set()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def error(self) -> RequestCancelledError | None:
        if self._event.is_set():
            return RequestCancelledError(self._reason or "call cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return RequestCancelledError("context deadline exceeded")
        return None

    def check(self) -> None:
        err = self.error()
        if err is not None:
            raise err

    async def sleep(self, delay: float) -> None:
        """Sleep for delay seconds, aborting with RequestCancelledError if the context ends first."""
        self.check()
        remaining = self.remaining()
        if remaining is not None and remaining < delay:
            delay = remaining

        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

        self.check()

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await aw while watching the context. If the context is cancelled or its
        deadline passes first, aw is cancelled and RequestCancelledError is raised.
        """
        task = asyncio.ensure_future(aw)
        if self.cancelled:
            task.cancel()
            await asyncio.wait({task})
            self.check()

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.wait({task})
        raise self.error() or RequestCancelledError("context deadline exceeded")
