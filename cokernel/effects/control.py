"""Scheduling effects: yield, suspend, spawn and self-lookup."""

from __future__ import annotations

from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any

from .base import EffectBase


@dataclass(frozen=True)
class YieldEffect(EffectBase):
    """Re-queue the current task at the tail of the run queue."""


@dataclass(frozen=True)
class SuspendEffect(EffectBase):
    """Park the current task until something calls ``Task.resume``."""


@dataclass(frozen=True)
class SpawnEffect(EffectBase):
    """Create and schedule a new task on the current task's scheduler."""

    body: Generator[Any, Any, Any] | Callable[..., Generator[Any, Any, Any]]
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)
    name: str | None = None

    def __post_init__(self) -> None:
        if not callable(self.body) and not hasattr(self.body, "send"):
            raise TypeError(
                f"body must be a generator or generator function, got {type(self.body).__name__}"
            )


@dataclass(frozen=True)
class CurrentTaskEffect(EffectBase):
    """Return the running task's own handle."""


def Yield() -> YieldEffect:
    return YieldEffect()


def Suspend() -> SuspendEffect:
    return SuspendEffect()


def Spawn(body: Any, *args: Any, name: str | None = None, **kwargs: Any) -> SpawnEffect:
    return SpawnEffect(body=body, args=args, kwargs=kwargs, name=name)


def CurrentTask() -> CurrentTaskEffect:
    return CurrentTaskEffect()


__all__ = [
    "CurrentTask",
    "CurrentTaskEffect",
    "Spawn",
    "SpawnEffect",
    "Suspend",
    "SuspendEffect",
    "Yield",
    "YieldEffect",
]
