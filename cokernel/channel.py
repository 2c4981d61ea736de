"""Go-style channels for cooperative tasks.

A channel moves values from writers to readers in FIFO order. With
``capacity > 0`` up to ``capacity`` values wait in a buffer; with
``capacity == 0`` every value is handed directly from one writer to one
reader and nothing is ever stored.

Waiting readers and writers sit in two FIFO queues. Every transfer that
involves a parked task is completed before that task is rescheduled: the
value travels inside the wake-up, so a task that runs in between can never
steal it, and the woken task does not need to compete for the buffer again.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from cokernel.effects.base import EffectBase
from cokernel.scheduler import ResumeInfo, ResumeWithValue
from cokernel.waiters import WaitQueue

if TYPE_CHECKING:
    from cokernel.task import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Channel(Generic[T]):
    """Typed FIFO channel with Go-like close semantics.

    Example:
        ch = Channel[int](1)

        def producer():
            for i in range(3):
                if not (yield ch.write(i)):
                    break
            ch.close()

        def consumer():
            while (value := (yield ch.read())) is not None:
                print(value)

    A read on a closed, drained channel resolves to ``None``, which cannot be
    told apart from a written ``None``. Channels that need to carry ``None``
    should wrap their values (a 1-tuple is enough).
    """

    def __init__(self, capacity: int = 0) -> None:
        if not isinstance(capacity, int) or capacity < 0:
            raise ValueError(f"capacity must be a non-negative int, got {capacity!r}")
        self._cap = capacity
        self._buffer: deque[T] = deque()
        self._closed = False
        self._readers = WaitQueue()
        self._writers = WaitQueue()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def size(self) -> int:
        """Number of buffered values."""
        return len(self._buffer)

    def cap(self) -> int:
        return self._cap

    def ready(self) -> bool:
        """True when a read would find a buffered value."""
        return bool(self._buffer)

    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return (
            f"Channel(cap={self._cap}, size={len(self._buffer)}, {state}, "
            f"readers={len(self._readers)}, writers={len(self._writers)})"
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def read(self) -> ChannelReadEffect:
        """Effect resolving to the next value, or ``None`` once closed and drained."""
        return ChannelReadEffect(channel=self)

    def write(self, value: T) -> ChannelWriteEffect:
        """Effect resolving to ``True`` when delivered, ``False`` if the channel is closed."""
        return ChannelWriteEffect(channel=self, value=value)

    def close(self) -> None:
        """Close the channel and wake every parked reader and writer.

        Parked readers get ``None`` (they only park on an empty buffer) and
        parked writers get ``False``; their values are dropped. Values already
        in the buffer stay readable. Closing twice is a no-op.
        """
        if self._closed:
            logger.warning("close() called on already closed %r", self)
            return
        self._closed = True
        readers = self._readers.drain()
        writers = self._writers.drain()
        logger.debug(
            "channel closed: waking %d reader(s), %d writer(s), %d buffered value(s) left",
            len(readers),
            len(writers),
            len(self._buffer),
        )
        for reader in readers:
            reader.wake(ResumeWithValue(self._buffer.popleft() if self._buffer else None))
        for writer in writers:
            writer.wake(ResumeWithValue(False))

    # ------------------------------------------------------------------
    # Handler side
    # ------------------------------------------------------------------

    def _try_write(self, value: T) -> bool | None:
        """Complete a write without blocking, or return ``None`` if it must park."""
        if self._closed:
            return False
        reader = self._readers.pop()
        if reader is not None:
            # a parked reader implies an empty buffer
            reader.wake(ResumeWithValue(value))
            return True
        if len(self._buffer) < self._cap:
            self._buffer.append(value)
            return True
        return None

    def _try_read(self) -> tuple[bool, T | None]:
        """Complete a read without blocking; ``(False, None)`` means park."""
        if self._buffer:
            value = self._buffer.popleft()
            writer = self._writers.pop()
            if writer is not None:
                # refill the slot just vacated with the oldest parked writer's value
                self._buffer.append(writer.payload)
                writer.wake(ResumeWithValue(True))
            return True, value
        writer = self._writers.pop()
        if writer is not None:
            writer.wake(ResumeWithValue(True))
            return True, writer.payload
        if self._closed:
            return True, None
        return False, None


@dataclass(frozen=True)
class ChannelReadEffect(EffectBase):
    channel: Channel[Any]


@dataclass(frozen=True)
class ChannelWriteEffect(EffectBase):
    channel: Channel[Any]
    value: Any


def _handle_read(effect: ChannelReadEffect, task: Task[Any]) -> ResumeInfo | None:
    ch = effect.channel
    done, value = ch._try_read()
    if done:
        return ResumeWithValue(value)
    ch._readers.push(task._park())
    return None


def _handle_write(effect: ChannelWriteEffect, task: Task[Any]) -> ResumeInfo | None:
    ch = effect.channel
    delivered = ch._try_write(effect.value)
    if delivered is not None:
        return ResumeWithValue(delivered)
    ch._writers.push(task._park(payload=effect.value))
    return None


HANDLERS = {
    ChannelReadEffect: _handle_read,
    ChannelWriteEffect: _handle_write,
}


__all__ = [
    "Channel",
    "ChannelReadEffect",
    "ChannelWriteEffect",
]
