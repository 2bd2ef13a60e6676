from .log_sinks import JsonlLogSink, MemoryLogSink, StdoutLogSink
from .trace_sinks import JsonlTraceSink, StdoutTraceSink

__all__ = [
    "JsonlLogSink",
    "MemoryLogSink",
    "StdoutLogSink",
    "JsonlTraceSink",
    "StdoutTraceSink",
]
