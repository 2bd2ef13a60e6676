from .log_sink import LogSink
from .trace_sink import TraceSink

# Public port exports keep wiring explicit at composition time.
__all__ = ["LogSink", "TraceSink"]
