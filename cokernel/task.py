"""Tasks: resumable generator bodies with completion tracking.

A Task wraps one generator. It records at most one outcome (``Ok`` on
return, ``Err`` on an escaped exception) and keeps a FIFO queue of joiners
that are released, in block order, the moment the outcome is set.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from cokernel.effects.base import EffectBase
from cokernel.errors import TaskDiscardedError
from cokernel.result import Err, Ok, Result
from cokernel.scheduler import ResumeInfo, ResumeWithError, ResumeWithValue
from cokernel.utils import describe_body, next_task_id
from cokernel.waiters import WaitQueue, Waiter

if TYPE_CHECKING:
    from cokernel.scheduler import Scheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskStatus(Enum):
    """Lifecycle of a task."""

    PENDING = auto()
    """Created, never stepped, not queued."""

    READY = auto()
    """Sitting in the scheduler's run queue."""

    RUNNING = auto()
    """Its body is executing right now."""

    WAITING = auto()
    """Parked on a channel, wait-group, join queue or awaited future."""

    SUSPENDED = auto()
    """Parked by ``Suspend()``; only ``Task.resume`` brings it back."""

    DONE = auto()
    """Body returned; outcome is ``Ok``."""

    FAILED = auto()
    """An exception escaped the body; outcome is ``Err``."""

    DISCARDED = auto()
    """Closed before finishing; there is no outcome."""


_FINISHED = (TaskStatus.DONE, TaskStatus.FAILED, TaskStatus.DISCARDED)
_RESUMABLE = (TaskStatus.PENDING, TaskStatus.SUSPENDED)


class Task(Generic[T]):
    """Handle for one cooperative task.

    Example:
        def worker(ch):
            value = yield ch.read()
            return value * 2

        task = scheduler.spawn(worker, ch)
    """

    def __init__(
        self,
        body: Generator[Any, Any, T] | Any,
        *args: Any,
        scheduler: Scheduler,
        name: str | None = None,
        **kwargs: Any,
    ) -> None:
        if inspect.isgenerator(body):
            if args or kwargs:
                raise TypeError("arguments can only be passed with a generator function")
            gen = body
        elif callable(body):
            gen = body(*args, **kwargs)
            if not inspect.isgenerator(gen):
                raise TypeError(
                    f"{describe_body(body)} must return a generator, got {type(gen).__name__}"
                )
        else:
            raise TypeError(f"task body must be a generator, got {type(body).__name__}")

        self.scheduler = scheduler
        self.name = name or f"task-{next_task_id()}:{describe_body(gen)}"
        self.status = TaskStatus.PENDING
        self._gen: Generator[Any, Any, T] | None = gen
        self._outcome: Result[T] | None = None
        self._joiners = WaitQueue()
        self._resume: ResumeInfo | None = None
        # wake-up dropped by Scheduler.clear(), delivered by the next resume()
        self._held: ResumeInfo | None = None
        self._waiter: Waiter | None = None
        self._queued = False
        self._started = False

    def __copy__(self) -> Task[T]:
        raise TypeError("Task handles cannot be copied; pass the handle itself")

    def __deepcopy__(self, memo: dict[int, Any]) -> Task[T]:
        raise TypeError("Task handles cannot be copied; pass the handle itself")

    def __repr__(self) -> str:
        return f"Task({self.name!r}, {self.status.name})"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resume(self, value: Any = None) -> bool:
        """Schedule the task's next step; does not run it synchronously.

        Only pending tasks and tasks parked by ``Suspend()`` accept an
        external resume. ``value`` becomes the result of the ``Suspend()``
        yield; it is ignored for a task that has not started yet.

        A task taken off the run queue by :meth:`Scheduler.clear` still holds
        the value it was woken with (a channel read, a join result); that
        value is delivered instead of ``value``.
        """
        if not self._accepts_resume("resume"):
            return False
        if self._held is not None:
            held, self._held = self._held, None
            logger.debug("resume %s with the value held since clear()", self.name)
            return self.scheduler.schedule(self, held)
        if self.status is TaskStatus.PENDING:
            value = None
        return self.scheduler.schedule(self, ResumeWithValue(value))

    def resume_with_error(self, error: BaseException) -> bool:
        """Schedule the task so that ``error`` is raised at its ``Suspend()`` point."""
        if not isinstance(error, BaseException):
            raise TypeError(f"error must be BaseException, got {type(error).__name__}")
        if not self._accepts_resume("resume_with_error"):
            return False
        if self._held is not None:
            logger.warning(
                "resume_with_error ignored on %s: it holds an undelivered wake-up; use resume()",
                self.name,
            )
            return False
        return self.scheduler.schedule(self, ResumeWithError(error))

    def is_done(self) -> bool:
        return self._gen is None or self.status in _FINISHED

    def get_failure(self) -> Exception | None:
        """Return the exception captured from the body, or ``None``."""
        if self._outcome is None:
            return None
        return self._outcome.err()

    @property
    def outcome(self) -> Result[T] | None:
        return self._outcome

    def result(self) -> T:
        """Return the body's return value, raising its failure if it had one."""
        if self.status is TaskStatus.DISCARDED:
            raise TaskDiscardedError(f"{self.name} was discarded before finishing")
        if self._outcome is None:
            raise RuntimeError(f"{self.name} has not finished ({self.status.name})")
        return self._outcome.unwrap()

    def join(self) -> TaskJoinEffect:
        """Effect that waits for this task: ``value = yield task.join()``."""
        return TaskJoinEffect(task=self)

    def discard(self) -> None:
        """Abandon an unfinished task.

        The task's queued waiter entry is cancelled, its generator is closed
        so ``finally`` blocks run, and joiners are released with ``None``.
        """
        if self.is_done():
            return
        if self.status is TaskStatus.RUNNING:
            raise RuntimeError(f"{self.name} cannot discard itself while running")
        waiter, self._waiter = self._waiter, None
        gen, self._gen = self._gen, None
        self._resume = None
        self._held = None
        self.status = TaskStatus.DISCARDED
        logger.debug("discard %s", self.name)
        if waiter is not None:
            waiter.cancel()
        try:
            gen.close()
        finally:
            self._release_joiners(ResumeWithValue(None))

    # ------------------------------------------------------------------
    # Scheduler-facing hooks
    # ------------------------------------------------------------------

    def _accepts_resume(self, op: str) -> bool:
        if self.status in _RESUMABLE and not self._queued:
            return True
        if self.is_done():
            logger.debug("%s ignored on finished %s", op, self.name)
        else:
            logger.warning("%s ignored on %s while %s", op, self.name, self.status.name)
        return False

    def _mark_ready(self, resume: ResumeInfo) -> None:
        self._resume = resume
        self._held = None
        self._queued = True
        self.status = TaskStatus.READY

    def _unqueue(self) -> None:
        self._queued = False
        resume, self._resume = self._resume, None
        if not self.is_done():
            self._held = resume
            self.status = TaskStatus.SUSPENDED if self._started else TaskStatus.PENDING

    def _park(
        self,
        status: TaskStatus = TaskStatus.WAITING,
        payload: Any = None,
        on_cancel: Callable[[], Any] | None = None,
    ) -> Waiter:
        """Mark the task blocked and return the waiter entry a primitive queues."""
        waiter = Waiter(task=self, payload=payload, on_cancel=on_cancel)
        self._waiter = waiter
        self.status = status
        return waiter

    def _suspend(self) -> None:
        self._waiter = None
        self.status = TaskStatus.SUSPENDED

    def _wake(self, waiter: Waiter, resume: ResumeInfo) -> None:
        if self._waiter is waiter:
            self._waiter = None
        self.scheduler.schedule(self, resume)

    def _step(self) -> None:
        """Run the body until it parks or finishes."""
        resume, self._resume = self._resume, None
        self._queued = False
        self._started = True
        self.status = TaskStatus.RUNNING
        gen = self._gen
        assert gen is not None
        while True:
            try:
                if isinstance(resume, ResumeWithError):
                    effect = gen.throw(resume.error)
                else:
                    effect = gen.send(resume.value if resume is not None else None)
            except StopIteration as stop:
                self._complete(Ok(stop.value))
                return
            except Exception as exc:
                self._complete(Err(exc))
                return
            resume = self.scheduler.dispatch(effect, self)
            if resume is None:
                if self.status is TaskStatus.RUNNING:
                    # handler forgot to park the task; treat it as suspended
                    self._suspend()
                return

    def _complete(self, outcome: Result[T]) -> None:
        self._outcome = outcome
        self._gen = None
        self._waiter = None
        if isinstance(outcome, Err):
            self.status = TaskStatus.FAILED
            logger.debug("%s failed: %r", self.name, outcome.error)
        else:
            self.status = TaskStatus.DONE
            logger.debug("%s done", self.name)
        self._release_joiners(self._join_resume())

    def _join_resume(self) -> ResumeInfo:
        if isinstance(self._outcome, Err):
            return ResumeWithError(self._outcome.error)
        if isinstance(self._outcome, Ok):
            return ResumeWithValue(self._outcome.value)
        return ResumeWithValue(None)

    def _release_joiners(self, resume: ResumeInfo) -> None:
        for waiter in self._joiners.drain():
            waiter.wake(resume)


@dataclass(frozen=True)
class TaskJoinEffect(EffectBase):
    """Wait for a task to finish and return its value (or raise its failure)."""

    task: Task[Any]

    def __post_init__(self) -> None:
        if not isinstance(self.task, Task):
            raise TypeError(f"task must be Task, got {type(self.task).__name__}")


def _handle_join(effect: TaskJoinEffect, task: Task[Any]) -> ResumeInfo | None:
    target = effect.task
    if target is task:
        raise RuntimeError(f"{task.name} cannot join itself")
    if target.is_done():
        return target._join_resume()
    target._joiners.push(task._park())
    return None


HANDLERS = {TaskJoinEffect: _handle_join}


__all__ = [
    "Task",
    "TaskJoinEffect",
    "TaskStatus",
]
