from __future__ import annotations

import json
import os
import sys
from collections.abc import Iterable
from dataclasses import asdict, is_dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from usecase_kernel.kernel.trace import ReactionRecord, json_default
from usecase_kernel.ports.trace_sink import TraceSink


class JsonlTraceSink(TraceSink):
    # JsonlTraceSink writes one ReactionRecord per line.
    def __init__(
        self,
        *,
        path: Path,
        write_mode: Literal["line", "batch"] = "line",
        flush_every_n: int = 1,
        fsync_every_n: int | None = None,
    ) -> None:
        self._path = path
        self._write_mode = write_mode
        self._flush_every_n = max(1, flush_every_n)
        self._fsync_every_n = fsync_every_n
        self._emit_count = 0
        self._buffer: list[str] = []
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._path.open("a", encoding="utf-8")

    def emit(self, record: ReactionRecord) -> None:
        line = json.dumps(
            record_to_dict(record),
            separators=(",", ":"),
            ensure_ascii=False,
            default=json_default,
        )
        self._emit_count += 1
        if self._write_mode == "batch":
            self._buffer.append(line)
            if len(self._buffer) >= self._flush_every_n:
                self._write_lines(self._buffer)
                self._buffer.clear()
        else:
            self._write_lines([line])
            if self._emit_count % self._flush_every_n == 0:
                self._handle.flush()
        if self._fsync_every_n and self._emit_count % self._fsync_every_n == 0:
            self._handle.flush()
            os.fsync(self._handle.fileno())

    def flush(self) -> None:
        # Flush both buffered and handle-level writes.
        if self._buffer:
            self._write_lines(self._buffer)
            self._buffer.clear()
        self._handle.flush()

    def close(self) -> None:
        # Always flush pending data before releasing the descriptor.
        if self._handle.closed:
            return
        self.flush()
        self._handle.close()

    def _write_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self._handle.write(line + "\n")


class StdoutTraceSink(TraceSink):
    # StdoutTraceSink prints one JSON record per line.
    def emit(self, record: ReactionRecord) -> None:
        line = json.dumps(
            record_to_dict(record),
            separators=(",", ":"),
            ensure_ascii=False,
            default=json_default,
        )
        sys.stdout.write(line + "\n")

    def flush(self) -> None:
        sys.stdout.flush()

    def close(self) -> None:
        self.flush()


def record_to_dict(record: ReactionRecord) -> dict[str, object]:
    # Stable key order and explicit field mapping.
    return {
        "trace_id": record.trace_id,
        "runner": record.runner,
        "use_case": record.use_case,
        "flow": record.flow,
        "step_name": record.step_name,
        "actor": record.actor,
        "t_enter": _format_dt(record.t_enter),
        "t_exit": _format_dt(record.t_exit),
        "duration_ms": record.duration_ms,
        "msg_in": _as_dict(record.msg_in),
        "msg_out": _as_dict(record.msg_out),
        "position_before": record.position_before,
        "position_after": record.position_after,
        "status": record.status,
        "error": _as_dict(record.error),
    }


def _as_dict(obj: object) -> object:
    if obj is None:
        return None
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return obj


def _format_dt(value: datetime) -> str:
    # RFC3339 UTC format with Z suffix.
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
