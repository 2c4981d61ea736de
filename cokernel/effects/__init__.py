"""Effect values understood by the cokernel scheduler."""

from .base import EffectBase
from .control import (
    CurrentTask,
    CurrentTaskEffect,
    Spawn,
    SpawnEffect,
    Suspend,
    SuspendEffect,
    Yield,
    YieldEffect,
)
from .future import Await, AwaitEffect

__all__ = [
    "Await",
    "AwaitEffect",
    "CurrentTask",
    "CurrentTaskEffect",
    "EffectBase",
    "Spawn",
    "SpawnEffect",
    "Suspend",
    "SuspendEffect",
    "Yield",
    "YieldEffect",
]
