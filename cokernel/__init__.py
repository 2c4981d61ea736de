"""
cokernel - cooperative tasks, channels and wait-groups for Python generators.

Task bodies are generators that yield effects at their suspension points.
A single-threaded :class:`Scheduler` runs one task at a time from a FIFO run
queue; channels, wait-groups and joins park tasks on FIFO waiter queues and
put them back on the run queue when they can continue.

Example:
    >>> from cokernel import Channel, WaitGroup, Spawn, run
    >>>
    >>> def producer(ch):
    ...     for i in range(3):
    ...         yield ch.write(i)
    ...     ch.close()
    >>>
    >>> def main():
    ...     ch = Channel(1)
    ...     yield Spawn(producer, ch)
    ...     received = []
    ...     while (value := (yield ch.read())) is not None:
    ...         received.append(value)
    ...     return received
    >>>
    >>> run(main).unwrap()
    [0, 1, 2]
"""

from cokernel.channel import Channel, ChannelReadEffect, ChannelWriteEffect
from cokernel.effects import (
    Await,
    AwaitEffect,
    CurrentTask,
    CurrentTaskEffect,
    EffectBase,
    Spawn,
    SpawnEffect,
    Suspend,
    SuspendEffect,
    Yield,
    YieldEffect,
)
from cokernel.errors import (
    CokernelError,
    DeadlockError,
    TaskDiscardedError,
    UnhandledEffectError,
)
from cokernel.handlers import default_handlers
from cokernel.result import Err, Ok, Result
from cokernel.run import run
from cokernel.runtime import AsyncioRuntime
from cokernel.scheduler import ResumeInfo, ResumeWithError, ResumeWithValue, Scheduler
from cokernel.task import Task, TaskJoinEffect, TaskStatus
from cokernel.waitgroup import WaitGroup, WaitGroupWaitEffect

__version__ = "0.1.0"

__all__ = [
    "AsyncioRuntime",
    "Await",
    "AwaitEffect",
    "Channel",
    "ChannelReadEffect",
    "ChannelWriteEffect",
    "CokernelError",
    "CurrentTask",
    "CurrentTaskEffect",
    "DeadlockError",
    "EffectBase",
    "Err",
    "Ok",
    "Result",
    "ResumeInfo",
    "ResumeWithError",
    "ResumeWithValue",
    "Scheduler",
    "Spawn",
    "SpawnEffect",
    "Suspend",
    "SuspendEffect",
    "Task",
    "TaskDiscardedError",
    "TaskJoinEffect",
    "TaskStatus",
    "UnhandledEffectError",
    "WaitGroup",
    "WaitGroupWaitEffect",
    "Yield",
    "YieldEffect",
    "default_handlers",
    "run",
]
