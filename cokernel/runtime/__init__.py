"""Event-loop integrations for the cokernel scheduler."""

from .asyncio_runtime import AsyncioRuntime

__all__ = ["AsyncioRuntime"]
