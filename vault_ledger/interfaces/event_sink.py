"""Sink for informational ledger notifications."""
from typing import Any, Protocol


class EventSink(Protocol):
    def emit(self, event: str, payload: dict[str, Any]) -> None: ...
