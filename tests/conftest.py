"""
Shared fixtures: in-memory debug log and a settable clock
"""

import pytest

from pulse.logging import DebugLog, set_debug_log


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def debug_log():
    """
    Fresh process-wide log that does not write to any stream
    """
    log = DebugLog("none")
    previous = set_debug_log(log)
    yield log
    set_debug_log(previous)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
