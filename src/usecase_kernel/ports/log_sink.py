from __future__ import annotations

from typing import Protocol, runtime_checkable

from usecase_kernel.observability.logging import LogMessage


# LogSink receives structured runner diagnostics.
@runtime_checkable
class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        """Consume one LogMessage."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Close the sink and release resources."""
        raise NotImplementedError("LogSink is a port; use a concrete adapter.")
