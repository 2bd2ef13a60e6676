from .logging import LEVEL_ORDER, LogLevel, LogMessage, is_enabled

__all__ = ["LEVEL_ORDER", "LogLevel", "LogMessage", "is_enabled"]
