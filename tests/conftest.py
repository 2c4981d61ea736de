"""
Shared fixtures for cokernel tests.

Every test gets its own Scheduler so no run queue state leaks between tests.
"""

from __future__ import annotations

import pytest

from cokernel import Scheduler


@pytest.fixture
def scheduler() -> Scheduler:
    return Scheduler()
