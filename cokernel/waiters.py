"""FIFO waiter queues shared by every blocking primitive."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cokernel.scheduler import ResumeInfo
    from cokernel.task import Task


@dataclass(slots=True, eq=False)
class Waiter:
    """One parked task on one primitive.

    ``payload`` carries the value a writer offers. ``cancelled`` is set when
    the task is discarded while parked so the primitive skips the entry
    instead of handing it a value nobody will receive. ``on_cancel`` lets
    the primitive release whatever it started for the task (an asyncio
    future, for instance).
    """

    task: Task[Any]
    payload: Any = None
    on_cancel: Callable[[], Any] | None = None
    cancelled: bool = False
    woken: bool = False

    def cancel(self) -> None:
        if self.cancelled or self.woken:
            return
        self.cancelled = True
        if self.on_cancel is not None:
            self.on_cancel()

    def wake(self, resume: ResumeInfo) -> None:
        if self.cancelled or self.woken:
            return
        self.woken = True
        self.task._wake(self, resume)


class WaitQueue:
    """Deque of :class:`Waiter` that hides cancelled entries."""

    __slots__ = ("_waiters",)

    def __init__(self) -> None:
        self._waiters: deque[Waiter] = deque()

    def push(self, waiter: Waiter) -> Waiter:
        self._waiters.append(waiter)
        return waiter

    def _drop_cancelled_head(self) -> None:
        while self._waiters and self._waiters[0].cancelled:
            self._waiters.popleft()

    def peek(self) -> Waiter | None:
        self._drop_cancelled_head()
        return self._waiters[0] if self._waiters else None

    def pop(self) -> Waiter | None:
        self._drop_cancelled_head()
        return self._waiters.popleft() if self._waiters else None

    def drain(self) -> list[Waiter]:
        """Remove and return every live waiter in block order."""
        live = [w for w in self._waiters if not w.cancelled]
        self._waiters.clear()
        return live

    def __len__(self) -> int:
        return sum(1 for w in self._waiters if not w.cancelled)

    def __bool__(self) -> bool:
        return self.peek() is not None

    def __iter__(self) -> Iterator[Waiter]:
        return (w for w in self._waiters if not w.cancelled)


__all__ = ["WaitQueue", "Waiter"]
