from __future__ import annotations

from pathlib import Path

import pytest

from usecase_kernel.config.loader import ConfigError, load_config, parse_config
from usecase_kernel.config.models import RunnerConfig


def test_load_config_happy_path(tmp_path: Path) -> None:
    path = tmp_path / "runner.yml"
    path.write_text(
        "\n".join(
            [
                "version: 1",
                "name: greeter",
                "tracing:",
                "  enabled: true",
                "  signature:",
                "    mode: hash",
                "  sink:",
                "    kind: jsonl",
                "    jsonl:",
                "      path: out/trace.jsonl",
                "      write_mode: batch",
                "      flush_every_n: 10",
                "logging:",
                "  enabled: true",
                "  level: debug",
                "  sink:",
                "    kind: jsonl",
                "    path: out/runner.log.jsonl",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.name == "greeter"
    assert config.tracing.enabled
    assert config.tracing.signature.mode == "hash"
    assert config.tracing.sink is not None and config.tracing.sink.jsonl is not None
    assert config.tracing.sink.jsonl.write_mode == "batch"
    assert config.tracing.sink.jsonl.flush_every_n == 10
    assert config.logging.level == "debug"
    assert config.logging.sink.path == "out/runner.log.jsonl"


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")

    config = load_config(path)

    assert config == RunnerConfig()
    assert not config.tracing.enabled
    assert not config.logging.enabled
    assert config.logging.level == "info"


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)


def test_invalid_yaml_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "broken.yml"
    path.write_text("name: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="YAML"):
        load_config(path)


def test_unknown_top_level_keys_are_rejected() -> None:
    with pytest.raises(ConfigError, match="Unknown top-level keys"):
        parse_config({"name": "x", "pipeline": {}})


def test_unsupported_version_is_rejected() -> None:
    with pytest.raises(ConfigError, match="Unsupported config version"):
        parse_config({"version": 2})


@pytest.mark.parametrize(
    "raw",
    [
        {"tracing": {"enabled": True, "sink": {"kind": "jsonl"}}},
        {"tracing": {"sink": {"kind": "kafka"}}},
        {"tracing": {"signature": {"mode": "full"}}},
        {"tracing": {"sink": {"kind": "jsonl", "jsonl": {"path": "t", "flush_every_n": 0}}}},
        {"logging": {"level": "trace"}},
        {"logging": {"sink": {"kind": "jsonl"}}},
        {"logging": {"enabled": True, "colour": True}},
    ],
)
def test_invalid_sections_raise_config_error(raw: dict[str, object]) -> None:
    with pytest.raises(ConfigError):
        parse_config(raw)
