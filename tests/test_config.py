"""Tests for primer.config."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from primer.config import DEFAULT_BUDGET, ConfigError, ContextConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, ContextConfig)
    assert config.root == tmp_path.resolve()
    assert config.budget == DEFAULT_BUDGET
    assert config.key_files == []
    assert config.exclude_signatures == ["**/*.test.ts", "**/*.spec.ts"]
    assert config.knowledge_dir == ".primer/knowledge"
    assert config.signature_depth == "exports"
    assert config.code_map_format == "skeleton"
    assert config.auto_knowledge is True
    assert config.max_depth == 20
    assert config.output_path == tmp_path.resolve() / ".primer" / "CONTEXT.md"
    assert config.source is None


def test_load_config_parses_context_section(tmp_path: Path) -> None:
    config_file = tmp_path / ".primer.yml"
    config_file.write_text(
        """
context:
  budget: 8000
  key_files:
    - "README.md"
    - "src/config/*.ts"
  exclude_signatures: ["**/*.gen.ts"]
  knowledge_dir: docs/notes
  signature_depth: all
  code_map_format: signatures
  auto_knowledge: false
  max_depth: 6
  ignore: ["fixtures/"]
  output: CONTEXT.md
  tagline: false
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.budget == 8000
    assert config.key_files == ["README.md", "src/config/*.ts"]
    assert config.exclude_signatures == ["**/*.gen.ts"]
    assert config.knowledge_dir == "docs/notes"
    assert config.signature_depth == "all"
    assert config.code_map_format == "signatures"
    assert config.auto_knowledge is False
    assert config.max_depth == 6
    assert config.ignore == ["fixtures/"]
    assert config.output_path == tmp_path.resolve() / "CONTEXT.md"
    assert config.tagline is False
    assert config.source == config_file.resolve()


def test_invalid_fields_fall_back_with_warning(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    (tmp_path / ".primer.yml").write_text(
        "context:\n  budget: 50\n  signature_depth: everything\n  max_depth: 0\n",
        encoding="utf-8",
    )

    with caplog.at_level(logging.WARNING, logger="primer"):
        config = load_config(tmp_path)

    assert config.budget == DEFAULT_BUDGET
    assert config.signature_depth == "exports"
    assert config.max_depth == 20
    messages = " ".join(record.getMessage() for record in caplog.records)
    assert "context.budget" in messages
    assert "context.signature_depth" in messages


def test_malformed_yaml_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".primer.yml").write_text("context: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_non_mapping_root_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / ".primer.yml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".primer.yml").write_text("", encoding="utf-8")
    config = load_config(tmp_path)
    assert config.budget == DEFAULT_BUDGET
