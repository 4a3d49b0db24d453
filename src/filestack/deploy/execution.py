"""Running blocking adapter and lock calls from the async passes."""

from __future__ import annotations

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Callable

from filestack.core.protocols import IDeploymentLock


class WorkerCall:
    """A blocking call running in a worker thread.

    A thread cannot be interrupted, so cancelling or timing out a `wait`
    only stops waiting; `settle` then blocks until the thread is done.
    """

    def __init__(self, fn: Callable[..., Any], *args: Any) -> None:
        self._future = asyncio.ensure_future(asyncio.to_thread(fn, *args))

    async def wait(self, timeout: float | None) -> Any:
        return await asyncio.wait_for(asyncio.shield(self._future), timeout=timeout)

    async def settle(self) -> tuple[bool, Any]:
        """Wait for the thread to finish; returns (succeeded, result).

        Further cancellation requests are absorbed here; the caller is
        already unwinding from the first one.
        """
        while not self._future.done():
            try:
                await asyncio.wait({self._future})
            except asyncio.CancelledError:
                continue
        if self._future.cancelled() or self._future.exception() is not None:
            return False, None
        return True, self._future.result()


@asynccontextmanager
async def hold_lock(lock: IDeploymentLock, key: str) -> AsyncIterator[None]:
    """Enter `lock.hold(key)` from a worker thread so a blocking acquire never stalls the loop."""
    held = lock.hold(key)
    acquire = WorkerCall(held.__enter__)
    try:
        await acquire.wait(None)
    except asyncio.CancelledError:
        acquired, _ = await acquire.settle()
        if acquired:
            held.__exit__(None, None, None)
        raise

    try:
        yield
    except BaseException:
        if not held.__exit__(*sys.exc_info()):
            raise
    else:
        held.__exit__(None, None, None)
