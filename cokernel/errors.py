"""cokernel error types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cokernel.task import Task


class CokernelError(Exception):
    """Base class for errors raised by the runtime itself."""


class UnhandledEffectError(CokernelError):
    """Raised into a task that yielded a value no handler understands.

    Attributes:
        effect: The yielded value that could not be dispatched.
    """

    def __init__(self, effect: Any) -> None:
        self.effect = effect
        super().__init__(
            f"No handler for {type(effect).__name__}: {effect!r}\n"
            "Hint: yield an effect such as ch.read(), wg.wait(), task.join() or Yield(); "
            "Await() needs an AsyncioRuntime"
        )


class DeadlockError(CokernelError):
    """Raised when the run queue drained while the main task was still blocked."""

    def __init__(self, task: Task[Any]) -> None:
        self.task = task
        super().__init__(
            f"{task.name} is {task.status.name.lower()} but no task is ready to run"
        )


class TaskDiscardedError(CokernelError):
    """Raised by :meth:`Task.result` for a task that was discarded before finishing."""


__all__ = [
    "CokernelError",
    "DeadlockError",
    "TaskDiscardedError",
    "UnhandledEffectError",
]
