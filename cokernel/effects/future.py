from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any

from .base import EffectBase


@dataclass(frozen=True)
class AwaitEffect(EffectBase):
    """Wait for an asyncio awaitable; handled by ``AsyncioRuntime``."""

    awaitable: Any

    def __post_init__(self) -> None:
        if not inspect.isawaitable(self.awaitable):
            raise TypeError(f"Await requires an awaitable, got {type(self.awaitable).__name__}")


def Await(awaitable: Any) -> AwaitEffect:
    return AwaitEffect(awaitable=awaitable)


__all__ = ["Await", "AwaitEffect"]
