from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from usecase_kernel.adapters.log_sinks import JsonlLogSink, MemoryLogSink, StdoutLogSink, log_to_dict
from usecase_kernel.observability.logging import LogMessage, is_enabled
from usecase_kernel.ports.log_sink import LogSink


def _message(text: str = "step reacted") -> LogMessage:
    return LogMessage(
        level="debug",
        message=text,
        timestamp=datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC),
        fields={"runner": "r1", "step": "Greet: S1"},
    )


def test_log_to_dict_shape() -> None:
    assert log_to_dict(_message()) == {
        "level": "debug",
        "message": "step reacted",
        "timestamp": "2025-01-01T12:00:00Z",
        "fields": {"runner": "r1", "step": "Greet: S1"},
    }


def test_stdout_log_sink_writes_json_line(capsys: pytest.CaptureFixture[str]) -> None:
    sink = StdoutLogSink()
    sink.emit(_message())
    sink.close()

    payload = json.loads(capsys.readouterr().out)
    assert payload["message"] == "step reacted"
    assert payload["fields"]["runner"] == "r1"


def test_jsonl_log_sink_appends(tmp_path: Path) -> None:
    path = tmp_path / "logs" / "runner.jsonl"
    first = JsonlLogSink(path)
    first.emit(_message("model attached"))
    first.close()
    second = JsonlLogSink(path)
    second.emit(_message("runner stopped"))
    second.close()
    second.close()

    messages = [json.loads(line)["message"] for line in path.read_text(encoding="utf-8").splitlines()]
    assert messages == ["model attached", "runner stopped"]


def test_memory_log_sink_keeps_messages() -> None:
    sink = MemoryLogSink()
    sink.emit(_message())
    sink.close()
    assert [m.message for m in sink.messages] == ["step reacted"]
    assert isinstance(sink, LogSink)


def test_log_message_validation() -> None:
    with pytest.raises(ValueError):
        LogMessage(level="", message="x")
    with pytest.raises(ValueError):
        LogMessage(level="trace", message="x")
    with pytest.raises(ValueError):
        LogMessage(level="info", message="")


@pytest.mark.parametrize(
    ("level", "threshold", "expected"),
    [
        ("debug", "info", False),
        ("info", "info", True),
        ("error", "warning", True),
        ("warning", "error", False),
    ],
)
def test_level_threshold(level: str, threshold: str, expected: bool) -> None:
    assert is_enabled(level, threshold) is expected
