from __future__ import annotations

from typing import Protocol, runtime_checkable

from usecase_kernel.kernel.trace import ReactionRecord


# TraceSink is a port-like interface for reaction trace adapters.
@runtime_checkable
class TraceSink(Protocol):
    def emit(self, record: ReactionRecord) -> None:
        """Consume one ReactionRecord."""
        raise NotImplementedError("TraceSink is a port; use a concrete adapter.")

    def flush(self) -> None:
        """Flush buffered trace output if supported."""
        raise NotImplementedError("TraceSink is a port; use a concrete adapter.")

    def close(self) -> None:
        """Close the sink and release resources."""
        raise NotImplementedError("TraceSink is a port; use a concrete adapter.")
