from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from usecase_kernel.config.models import RunnerConfig


# ConfigError is raised for invalid configuration: fail fast, never fall back to defaults.
class ConfigError(ValueError):
    pass


def load_config(path: Path) -> RunnerConfig:
    # YAML loader for runner configuration files.
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {path}") from exc
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return parse_config(raw)


def parse_config(raw: dict[str, Any]) -> RunnerConfig:
    _validate_top_level(raw)
    try:
        return RunnerConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc


def _validate_top_level(raw: dict[str, Any]) -> None:
    # Unknown top-level keys get a short message instead of a pydantic dump.
    allowed = {"version", "name", "tracing", "logging"}
    unknown = set(raw.keys()) - allowed
    if unknown:
        raise ConfigError(f"Unknown top-level keys: {sorted(unknown)}")
    version = raw.get("version", 1)
    if version != 1:
        raise ConfigError(f"Unsupported config version: {version}")
