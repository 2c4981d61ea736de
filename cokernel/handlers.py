"""Default effect handlers.

Each primitive module exports a ``HANDLERS`` map for its own effects; this
module adds the scheduling effects and merges everything into the immutable
map a :class:`~cokernel.scheduler.Scheduler` starts with.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from frozendict import frozendict

from cokernel.effects.control import (
    CurrentTaskEffect,
    SpawnEffect,
    SuspendEffect,
    YieldEffect,
)
from cokernel.scheduler import ResumeInfo, ResumeWithValue

if TYPE_CHECKING:
    from cokernel.scheduler import Handler
    from cokernel.task import Task


def _handle_yield(effect: YieldEffect | None, task: Task[Any]) -> ResumeInfo | None:
    task.scheduler.schedule(task, ResumeWithValue(None))
    return None


def _handle_suspend(effect: SuspendEffect, task: Task[Any]) -> ResumeInfo | None:
    task._suspend()
    return None


def _handle_spawn(effect: SpawnEffect, task: Task[Any]) -> ResumeInfo | None:
    child = task.scheduler.spawn(effect.body, *effect.args, name=effect.name, **effect.kwargs)
    return ResumeWithValue(child)


def _handle_current_task(effect: CurrentTaskEffect, task: Task[Any]) -> ResumeInfo | None:
    return ResumeWithValue(task)


CONTROL_HANDLERS: dict[type, Handler] = {
    YieldEffect: _handle_yield,
    # a bare ``yield`` reschedules, like an explicit Yield()
    type(None): _handle_yield,
    SuspendEffect: _handle_suspend,
    SpawnEffect: _handle_spawn,
    CurrentTaskEffect: _handle_current_task,
}


def default_handlers() -> frozendict[type, Handler]:
    """Handlers for every effect the core runtime understands."""
    from cokernel import channel, task, waitgroup

    return frozendict(
        {
            **CONTROL_HANDLERS,
            **task.HANDLERS,
            **channel.HANDLERS,
            **waitgroup.HANDLERS,
        }
    )


__all__ = ["CONTROL_HANDLERS", "default_handlers"]
