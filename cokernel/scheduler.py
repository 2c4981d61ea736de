"""Cooperative single-threaded scheduler.

The Scheduler owns one FIFO run queue of ready tasks and the loop that
drains it. Tasks are generators; stepping a task sends its pending resume
payload into the generator and keeps going until a yielded effect parks it.
Blocking primitives re-enqueue parked tasks through :meth:`Scheduler.schedule`.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from frozendict import frozendict

from cokernel.errors import UnhandledEffectError
from cokernel.utils import DEBUG_SCHEDULER

if TYPE_CHECKING:
    from cokernel.task import Task

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ResumeWithValue:
    value: Any = None


@dataclass(frozen=True)
class ResumeWithError:
    error: BaseException


ResumeInfo = ResumeWithValue | ResumeWithError

# A handler answers an effect for a task: a ResumeInfo continues the task
# immediately, None means the handler parked the task somewhere.
Handler = Callable[[Any, "Task[Any]"], "ResumeInfo | None"]


class Scheduler:
    """Single coordination point for all ready work.

    Each embedding program creates its own instance; nothing is shared
    between schedulers, so independent runtimes (tests, threads) never
    see each other's tasks.
    """

    def __init__(self, handlers: Mapping[type, Handler] | None = None) -> None:
        from cokernel.handlers import default_handlers

        self._ready: deque[Task[Any]] = deque()
        self._handlers: frozendict[type, Handler] = default_handlers()
        if handlers:
            self.install(handlers)
        self._current: Task[Any] | None = None
        self._running = False

    @property
    def handlers(self) -> frozendict[type, Handler]:
        return self._handlers

    def install(self, handlers: Mapping[type, Handler]) -> None:
        """Register extra handlers; later registrations win per effect type."""
        self._handlers = frozendict({**self._handlers, **handlers})

    @property
    def current(self) -> Task[Any] | None:
        """Task whose body is executing right now, if any."""
        return self._current

    @property
    def pending(self) -> int:
        return len(self._ready)

    def __len__(self) -> int:
        return len(self._ready)

    def spawn(self, body: Any, *args: Any, name: str | None = None, **kwargs: Any) -> Task[Any]:
        """Create a task from ``body`` and schedule its first step."""
        from cokernel.task import Task

        task = Task(body, *args, scheduler=self, name=name, **kwargs)
        logger.debug("spawn %s", task.name)
        task.resume()
        return task

    def schedule(self, task: Task[Any], resume: ResumeInfo | None = None) -> bool:
        """Append ``task`` to the tail of the run queue.

        Finished tasks and tasks already waiting in the queue are dropped, so
        a task is never stepped twice for one wake-up.
        """
        if task.is_done():
            logger.debug("drop schedule of finished %s", task.name)
            return False
        if task._queued:
            logger.debug("drop duplicate schedule of %s", task.name)
            return False
        task._mark_ready(resume if resume is not None else ResumeWithValue())
        self._ready.append(task)
        return True

    def run(self) -> int:
        """Resume ready tasks until the run queue is empty.

        Returns the number of task steps executed. Task failures are captured
        on the task, so this never raises on their behalf.
        """
        if self._running:
            raise RuntimeError("Scheduler.run() is not reentrant")
        self._running = True
        steps = 0
        try:
            while self._ready:
                task = self._ready.popleft()
                if task.is_done():
                    task._queued = False
                    continue
                if DEBUG_SCHEDULER:
                    logger.debug("step %s (%d ready)", task.name, len(self._ready))
                self._current = task
                try:
                    task._step()
                finally:
                    self._current = None
                steps += 1
        finally:
            self._running = False
        return steps

    def clear(self) -> None:
        """Drop every queued task without resuming it."""
        dropped = len(self._ready)
        while self._ready:
            self._ready.popleft()._unqueue()
        if dropped:
            logger.debug("cleared %d queued task(s)", dropped)

    def dispatch(self, effect: Any, task: Task[Any]) -> ResumeInfo | None:
        """Route a yielded value to its handler.

        Errors never escape: a missing handler or a handler that raises turns
        into an exception thrown back into the yielding task.
        """
        handler = self._lookup(type(effect))
        if handler is None:
            return ResumeWithError(UnhandledEffectError(effect))
        try:
            return handler(effect, task)
        except Exception as exc:
            return ResumeWithError(exc)

    def _lookup(self, effect_type: type) -> Handler | None:
        for cls in effect_type.__mro__:
            handler = self._handlers.get(cls)
            if handler is not None:
                return handler
        return None

    def __repr__(self) -> str:
        return f"Scheduler(ready={len(self._ready)}, handlers={len(self._handlers)})"


__all__ = [
    "Handler",
    "ResumeInfo",
    "ResumeWithError",
    "ResumeWithValue",
    "Scheduler",
]
