"""Base class for effect values yielded by task bodies."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EffectBase:
    """A request from a task body to the scheduler.

    Effects are pure data. A body yields one, the scheduler looks up the
    handler registered for its type, and the handler either answers right
    away or parks the task on some waiter queue.
    """


__all__ = ["EffectBase"]
