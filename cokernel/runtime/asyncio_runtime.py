"""Asyncio runtime: drive a Scheduler from an asyncio event loop.

Tasks park on ``Await(awaitable)``; the awaitable runs as an asyncio future
and its done-callback wakes the parked task. Discarding the task cancels
the future. Between event-loop waits the runtime drains the scheduler, so
I/O completions and channel/wait-group wake-ups share one FIFO run queue.
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from cokernel.effects.future import AwaitEffect
from cokernel.errors import DeadlockError, TaskDiscardedError
from cokernel.result import Err, Result
from cokernel.scheduler import ResumeInfo, ResumeWithError, ResumeWithValue, Scheduler

if TYPE_CHECKING:
    from cokernel.task import Task
    from cokernel.waiters import Waiter

logger = logging.getLogger(__name__)


class AsyncioRuntime:
    """Asyncio-backed driver for a :class:`Scheduler`.

    Example:
        def fetch(url):
            reader, writer = yield Await(asyncio.open_connection(host, port))
            ...

        result = AsyncioRuntime().run(fetch, url)
    """

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.scheduler.install({AwaitEffect: self._handle_await})
        self._pending: set[asyncio.Future[Any]] = set()

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    def run(self, body: Any, *args: Any, **kwargs: Any) -> Result[Any]:
        """Run ``body`` as the main task using ``asyncio.run()``."""
        return asyncio.run(self.run_async(body, *args, **kwargs))

    async def run_async(self, body: Any, *args: Any, **kwargs: Any) -> Result[Any]:
        """Spawn ``body`` and drive the scheduler until no work is left.

        Returns:
            The main task's outcome, ``Err(DeadlockError)`` if it is still
            blocked when nothing is ready or pending.
        """
        main = self.scheduler.spawn(body, *args, **kwargs)
        await self.drain()
        if main.outcome is not None:
            return main.outcome
        if main.is_done():
            return Err(TaskDiscardedError(f"{main.name} was discarded before finishing"))
        return Err(DeadlockError(main))

    async def drain(self) -> None:
        """Alternate scheduler passes with waits on pending awaitables."""
        while True:
            self.scheduler.run()
            if not self._pending:
                return
            await asyncio.wait(set(self._pending), return_when=asyncio.FIRST_COMPLETED)
            # let completion callbacks queued alongside the waiter run first
            await asyncio.sleep(0)

    def _handle_await(self, effect: AwaitEffect, task: Task[Any]) -> ResumeInfo | None:
        loop = asyncio.get_running_loop()
        future = asyncio.ensure_future(effect.awaitable, loop=loop)
        self._pending.add(future)
        # parked like any other primitive wait: only the future can wake it
        waiter = task._park(payload=future, on_cancel=partial(self._cancel, future))
        future.add_done_callback(partial(self._on_done, waiter))
        return None

    def _cancel(self, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        future.cancel()

    def _on_done(self, waiter: Waiter, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if waiter.cancelled:
            logger.debug("await finished for discarded %s", waiter.task.name)
            return
        if future.cancelled():
            waiter.wake(ResumeWithError(asyncio.CancelledError()))
            return
        error = future.exception()
        if error is not None:
            waiter.wake(ResumeWithError(error))
        else:
            waiter.wake(ResumeWithValue(future.result()))


__all__ = ["AsyncioRuntime"]
