from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cokernel.effects.base import EffectBase
from cokernel.scheduler import ResumeInfo, ResumeWithValue
from cokernel.waiters import WaitQueue

if TYPE_CHECKING:
    from cokernel.task import Task

logger = logging.getLogger(__name__)


class WaitGroup:
    """Countdown latch: ``wait()`` blocks until every ``add()`` is matched by ``done()``.

    The counter never goes below zero; surplus ``done()`` calls are ignored.
    All waiters are released together, in the order they blocked, when the
    counter reaches zero.
    """

    def __init__(self) -> None:
        self._count = 0
        self._waiters = WaitQueue()

    @property
    def count(self) -> int:
        return self._count

    def add(self, delta: int = 1) -> None:
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise ValueError(f"delta must be an int, got {type(delta).__name__}")
        if delta < 0:
            raise ValueError(f"delta must be non-negative, got {delta}")
        self._count += delta

    def done(self) -> None:
        if self._count > 0:
            self._count -= 1
        else:
            logger.debug("done() on a wait group already at zero")
        if self._count == 0:
            waiters = self._waiters.drain()
            if waiters:
                logger.debug("wait group reached zero: releasing %d waiter(s)", len(waiters))
            for waiter in waiters:
                waiter.wake(ResumeWithValue(None))

    def wait(self) -> WaitGroupWaitEffect:
        """Effect that blocks while the counter is above zero."""
        return WaitGroupWaitEffect(wait_group=self)

    @contextmanager
    def guard(self) -> Iterator[WaitGroup]:
        """Call ``done()`` when the block exits, however it exits."""
        try:
            yield self
        finally:
            self.done()

    def __repr__(self) -> str:
        return f"WaitGroup(count={self._count}, waiters={len(self._waiters)})"


@dataclass(frozen=True)
class WaitGroupWaitEffect(EffectBase):
    wait_group: WaitGroup


def _handle_wait(effect: WaitGroupWaitEffect, task: Task[Any]) -> ResumeInfo | None:
    wg = effect.wait_group
    if wg.count == 0:
        return ResumeWithValue(None)
    wg._waiters.push(task._park())
    return None


HANDLERS = {WaitGroupWaitEffect: _handle_wait}


__all__ = ["WaitGroup", "WaitGroupWaitEffect"]
