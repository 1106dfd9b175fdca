"""The only source of time for the ledger."""
import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall clock in whole seconds."""

    def now(self) -> int:
        return int(time.time())
