"""Notification sinks."""
from .logging_sink import LoggingEventSink, RecordingEventSink

__all__ = ["LoggingEventSink", "RecordingEventSink"]
