from __future__ import annotations

import json
import sys
from pathlib import Path

from usecase_kernel.observability.logging import LogMessage
from usecase_kernel.ports.log_sink import LogSink


class StdoutLogSink(LogSink):
    # Minimal structured log sink: one JSON object per line on stdout.
    def emit(self, message: LogMessage) -> None:
        sys.stdout.write(json.dumps(log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str) + "\n")

    def close(self) -> None:
        sys.stdout.flush()


class JsonlLogSink(LogSink):
    # File-backed structured log sink for runner diagnostics.
    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self._path.open("a", encoding="utf-8")

    def emit(self, message: LogMessage) -> None:
        payload = json.dumps(log_to_dict(message), separators=(",", ":"), ensure_ascii=False, default=str)
        self._file.write(payload + "\n")
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


class MemoryLogSink(LogSink):
    # Keeps messages in memory; handy for embedding applications and tests.
    def __init__(self) -> None:
        self.messages: list[LogMessage] = []

    def emit(self, message: LogMessage) -> None:
        self.messages.append(message)

    def close(self) -> None:
        return None


def log_to_dict(message: LogMessage) -> dict[str, object]:
    return {
        "level": message.level,
        "message": message.message,
        "timestamp": message.timestamp.isoformat().replace("+00:00", "Z"),
        "fields": message.fields,
    }
