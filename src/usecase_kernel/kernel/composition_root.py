from __future__ import annotations

from pathlib import Path

from usecase_kernel.adapters.log_sinks import JsonlLogSink, StdoutLogSink
from usecase_kernel.adapters.trace_sinks import JsonlTraceSink, StdoutTraceSink
from usecase_kernel.config.models import LoggingConfig, RunnerConfig, TracingConfig
from usecase_kernel.kernel.runner import OutputSink, Runner
from usecase_kernel.kernel.trace import TraceRecorder
from usecase_kernel.ports.log_sink import LogSink
from usecase_kernel.ports.trace_sink import TraceSink


def build_runner(config: RunnerConfig | None = None, *, output_sink: OutputSink | None = None) -> Runner:
    # Composition root wires tracing and logging per config; the model is attached later via run().
    config = config if config is not None else RunnerConfig()
    trace_recorder, trace_sink = _build_tracing(config.tracing, config.name)
    return Runner(
        name=config.name,
        output_sink=output_sink,
        trace_recorder=trace_recorder,
        trace_sink=trace_sink,
        log_sink=_build_log_sink(config.logging),
        log_level=config.logging.level,
    )


def _build_tracing(tracing: TracingConfig, runner_name: str) -> tuple[TraceRecorder | None, TraceSink | None]:
    # Tracing is optional; when enabled, we create recorder + optional sink.
    if not tracing.enabled:
        return None, None

    recorder = TraceRecorder(runner_name=runner_name, signature_mode=tracing.signature.mode)

    if tracing.sink is None:
        # Without a sink the records stay on the recorder tape.
        return recorder, None

    if tracing.sink.kind == "stdout":
        return recorder, StdoutTraceSink()

    if tracing.sink.kind == "jsonl":
        jsonl = tracing.sink.jsonl
        assert jsonl is not None  # validated by config model
        return (
            recorder,
            JsonlTraceSink(
                path=Path(jsonl.path),
                write_mode=jsonl.write_mode,
                flush_every_n=jsonl.flush_every_n,
                fsync_every_n=jsonl.fsync_every_n,
            ),
        )

    raise ValueError(f"Unsupported trace sink kind: {tracing.sink.kind}")


def _build_log_sink(logging: LoggingConfig) -> LogSink | None:
    if not logging.enabled:
        return None
    if logging.sink.kind == "jsonl":
        assert logging.sink.path is not None  # validated by config model
        return JsonlLogSink(Path(logging.sink.path))
    return StdoutLogSink()
