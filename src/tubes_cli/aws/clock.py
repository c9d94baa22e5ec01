"""Time source for the stack wait loop."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Injectable time source."""

    def sleep(self, seconds: float) -> None: ...

    def monotonic(self) -> float: ...


class SystemClock:
    """Real wall-clock time."""

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def monotonic(self) -> float:
        return time.monotonic()
