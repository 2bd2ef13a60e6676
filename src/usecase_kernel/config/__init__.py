from .loader import ConfigError, load_config, parse_config
from .models import (
    LogSinkConfig,
    LoggingConfig,
    RunnerConfig,
    TraceSignatureConfig,
    TraceSinkConfig,
    TraceSinkJsonlConfig,
    TracingConfig,
)

# Config exports are intentionally small.
__all__ = [
    "ConfigError",
    "LogSinkConfig",
    "LoggingConfig",
    "RunnerConfig",
    "TraceSignatureConfig",
    "TraceSinkConfig",
    "TraceSinkJsonlConfig",
    "TracingConfig",
    "load_config",
    "parse_config",
]
