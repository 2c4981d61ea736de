"""
Outcome of a finished task.

``Task._complete`` stores ``Ok(value)`` when the body returned and
``Err(exc)`` when an ``Exception`` escaped it. Joiners, :func:`cokernel.run`
and the CLI read the outcome instead of letting the exception unwind through
the scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Result(Generic[T_co]):
    """Base of :class:`Ok` and :class:`Err`."""

    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def ok(self) -> T_co | None:
        """Return value of the body, ``None`` for a failed task."""
        return self.value if isinstance(self, Ok) else None

    def err(self) -> Exception | None:
        """Exception the body raised, ``None`` for a task that returned."""
        return self.error if isinstance(self, Err) else None

    def unwrap(self) -> T_co:
        """Return value of the body; re-raises the captured exception."""
        if isinstance(self, Err):
            raise self.error
        assert isinstance(self, Ok)
        return self.value


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    # only Exception subclasses are captured; BaseException leaves Scheduler.run()
    error: Exception


__all__ = ["Err", "Ok", "Result"]
