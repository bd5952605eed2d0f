"""Explicit cancellation token shared by every blocking wait of a run."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import AcquisitionCancelled
from .logging_utils import get_module_logger

logger = get_module_logger("Cancellation")

T = TypeVar("T")

DEADLINE_REASON = "deadline exceeded"


class CancelToken:
    """Cancellation handle passed into the settle wait, poll wait and fetch.

    Usage:
        token = CancelToken()
        if not await token.wait_or_timeout(1.0):
            raise token.error()
        frame = await token.run_until_cancelled(device.next_frame(token))
        ...
        token.cancel("signal SIGINT")
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._error: Optional[AcquisitionCancelled] = None
        self._deadline_handle: Optional[asyncio.TimerHandle] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Fire the token. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._error = AcquisitionCancelled(reason)
        self._event.set()
        logger.debug("Cancellation requested: %s", reason)

    def error(self) -> AcquisitionCancelled:
        """Return the single cancellation error for this token."""
        if self._error is None:
            raise RuntimeError("token has not been cancelled")
        return self._error

    async def wait_or_timeout(self, timeout: float) -> bool:
        """Wait ``timeout`` seconds unless cancelled first.

        Returns True when the full interval elapsed, False when the token
        fired (immediately if it already had).
        """
        if self._event.is_set():
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return not self._event.is_set()
        return False

    async def run_until_cancelled(self, operation: Awaitable[T]) -> T:
        """Race ``operation`` against the token.

        The operation's result or error wins if it finishes first; otherwise
        the operation is cancelled and ``AcquisitionCancelled`` is raised.
        """
        task = asyncio.ensure_future(operation)
        waiter = asyncio.ensure_future(self._event.wait())
        interrupted = False
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                interrupted = True
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
                except Exception as exc:
                    logger.debug("Cancelled operation raised while stopping: %s", exc)

        if interrupted:
            raise self.error()
        return task.result()

    def set_deadline(self, seconds: float) -> None:
        """Cancel the token with reason ``deadline exceeded`` after ``seconds``.

        Must be called from inside the running event loop.
        """
        if seconds <= 0:
            raise ValueError("deadline must be positive")
        self.close()
        loop = asyncio.get_running_loop()
        self._deadline_handle = loop.call_later(seconds, self.cancel, DEADLINE_REASON)
        logger.debug("Deadline set for %.3fs", seconds)

    def close(self) -> None:
        """Drop any pending deadline timer."""
        if self._deadline_handle is not None:
            self._deadline_handle.cancel()
            self._deadline_handle = None


__all__ = ["CancelToken", "DEADLINE_REASON"]
