"""Event sinks that publish ledger notifications."""
from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class LoggingEventSink:
    """Write each committed ledger event to the log."""

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        fields = " ".join(f"{k}={v}" for k, v in sorted(payload.items()))
        logger.log(self.level, "%s %s", event, fields)


class RecordingEventSink:
    """Keep events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event: str, payload: dict[str, Any]) -> None:
        self.events.append((event, dict(payload)))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]
