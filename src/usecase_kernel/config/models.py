from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Config models map YAML sections of a runner configuration to typed structures.
# Models themselves are always built in code; files only configure runners.


class TraceSignatureConfig(BaseModel):
    # How much of each message ends up in a reaction record.
    model_config = ConfigDict(extra="forbid")
    mode: Literal["type_only", "type_and_identity", "hash"] = "type_only"


class TraceSinkJsonlConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    path: str
    write_mode: Literal["line", "batch"] = "line"
    flush_every_n: int = Field(default=1, ge=1)
    fsync_every_n: int | None = Field(default=None, ge=1)


class TraceSinkConfig(BaseModel):
    # Trace sink selector: only one sink is active at a time.
    model_config = ConfigDict(extra="forbid")
    kind: Literal["jsonl", "stdout"]
    jsonl: TraceSinkJsonlConfig | None = None

    @model_validator(mode="after")
    def _require_jsonl(self) -> TraceSinkConfig:
        # For jsonl kind, a jsonl section is required to avoid silent defaults.
        if self.kind == "jsonl" and self.jsonl is None:
            raise ValueError("tracing.sink.jsonl is required when kind is 'jsonl'")
        return self


class TracingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = False
    signature: TraceSignatureConfig = Field(default_factory=TraceSignatureConfig)
    sink: TraceSinkConfig | None = None


class LogSinkConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["stdout", "jsonl"] = "stdout"
    path: str | None = None

    @model_validator(mode="after")
    def _require_path(self) -> LogSinkConfig:
        if self.kind == "jsonl" and not self.path:
            raise ValueError("logging.sink.path is required when kind is 'jsonl'")
        return self


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = False
    level: Literal["debug", "info", "warning", "error"] = "info"
    sink: LogSinkConfig = Field(default_factory=LogSinkConfig)


class RunnerConfig(BaseModel):
    # RunnerConfig is the top-level typed view of a runner configuration file.
    model_config = ConfigDict(extra="forbid")
    version: int = 1
    name: str = "runner"
    tracing: TracingConfig = Field(default_factory=TracingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
