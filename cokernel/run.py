"""Top-level driver: run one body to completion and return its outcome."""

from __future__ import annotations

import logging
from typing import Any

from cokernel.errors import DeadlockError, TaskDiscardedError
from cokernel.result import Err, Result
from cokernel.scheduler import Scheduler
from cokernel.task import TaskStatus

logger = logging.getLogger(__name__)


def run(
    body: Any,
    *args: Any,
    scheduler: Scheduler | None = None,
    **kwargs: Any,
) -> Result[Any]:
    """Spawn ``body`` as the main task, drain the scheduler, return its outcome.

    Args:
        body: Generator, or generator function called with ``args``/``kwargs``
        scheduler: Scheduler to run on; a fresh one by default

    Returns:
        ``Ok(value)`` if the main task returned, ``Err(error)`` if it raised,
        ``Err(DeadlockError)`` if nothing was left to run while it was blocked.
    """
    sched = scheduler if scheduler is not None else Scheduler()
    main = sched.spawn(body, *args, **kwargs)
    steps = sched.run()
    logger.debug("run finished %s after %d step(s)", main.name, steps)
    if main.status is TaskStatus.DISCARDED:
        return Err(TaskDiscardedError(f"{main.name} was discarded before finishing"))
    if main.outcome is None:
        return Err(DeadlockError(main))
    return main.outcome


__all__ = ["run"]
