"""
Utility functions and environment configuration for cokernel.
"""

import os
from itertools import count

# Environment variable to control per-step trace logging
DEBUG_SCHEDULER = os.environ.get("COKERNEL_DEBUG", "").lower() in ("1", "true", "yes")

_TASK_ID_COUNTER = count(1)


def next_task_id() -> int:
    """Return a process-unique task number used for default task names."""
    return next(_TASK_ID_COUNTER)


def describe_body(body: object) -> str:
    """Best-effort name of a task body for logs and reprs."""
    code = getattr(body, "gi_code", None)
    if code is not None:
        return code.co_qualname if hasattr(code, "co_qualname") else code.co_name
    return getattr(body, "__qualname__", None) or type(body).__name__
