"""Configuration loading for primer (.primer.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .logging import get_logger

CONFIG_FILENAME = ".primer.yml"

MIN_BUDGET = 1000
MAX_BUDGET = 100_000
DEFAULT_BUDGET = 12_000

SIGNATURE_DEPTHS = ("exports", "all")
CODE_MAP_FORMATS = ("skeleton", "signatures")

logger = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ContextConfig:
    """Settings for a compile run, read from the ``context`` section of .primer.yml."""

    root: Path
    budget: int = DEFAULT_BUDGET
    key_files: List[str] = field(default_factory=list)
    exclude_signatures: List[str] = field(
        default_factory=lambda: ["**/*.test.ts", "**/*.spec.ts"]
    )
    knowledge_dir: str = ".primer/knowledge"
    signature_depth: str = "exports"
    code_map_format: str = "skeleton"
    auto_knowledge: bool = True
    max_depth: int = 20
    ignore: List[str] = field(default_factory=list)
    output: str = ".primer/CONTEXT.md"
    tagline: bool = True
    source: Optional[Path] = None

    @property
    def output_path(self) -> Path:
        return self.root / self.output


def load_config(config_path: Path) -> ContextConfig:
    """Load configuration from disk, returning defaults when the file is absent.

    Invalid individual fields fall back to their defaults with a warning; a file
    that is not valid YAML (or not a mapping) raises :class:`ConfigError`.
    """
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ContextConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    section = _as_dict(data.get("context"))
    config = ContextConfig(root=root, source=config_file)
    if not section:
        return config

    budget = _as_int(section.get("budget"))
    if budget is not None:
        if MIN_BUDGET <= budget <= MAX_BUDGET:
            config.budget = budget
        else:
            _warn_invalid("budget", section.get("budget"), f"must be between {MIN_BUDGET} and {MAX_BUDGET}")
    elif "budget" in section:
        _warn_invalid("budget", section.get("budget"), "must be an integer")

    if "key_files" in section:
        config.key_files = _as_str_list(section.get("key_files"))
    if "exclude_signatures" in section:
        config.exclude_signatures = _as_str_list(section.get("exclude_signatures"))
    if "ignore" in section:
        config.ignore = _as_str_list(section.get("ignore"))

    knowledge_dir = _as_str(section.get("knowledge_dir"))
    if knowledge_dir:
        config.knowledge_dir = knowledge_dir

    output = _as_str(section.get("output"))
    if output:
        config.output = output

    config.signature_depth = _as_choice(
        section, "signature_depth", SIGNATURE_DEPTHS, config.signature_depth
    )
    config.code_map_format = _as_choice(
        section, "code_map_format", CODE_MAP_FORMATS, config.code_map_format
    )

    auto_knowledge = _as_bool(section.get("auto_knowledge"))
    if auto_knowledge is not None:
        config.auto_knowledge = auto_knowledge

    tagline = _as_bool(section.get("tagline"))
    if tagline is not None:
        config.tagline = tagline

    max_depth = _as_int(section.get("max_depth"))
    if max_depth is not None and max_depth >= 1:
        config.max_depth = max_depth
    elif "max_depth" in section:
        _warn_invalid("max_depth", section.get("max_depth"), "must be a positive integer")

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _warn_invalid(key: str, value: Any, reason: str) -> None:
    logger.warning("%s: context.%s=%r %s; using default", CONFIG_FILENAME, key, value, reason)


def _as_choice(section: Dict[str, Any], key: str, choices: Sequence[str], default: str) -> str:
    if key not in section:
        return default
    value = _as_str(section.get(key))
    if value is not None and value.lower() in choices:
        return value.lower()
    _warn_invalid(key, section.get(key), f"must be one of {', '.join(choices)}")
    return default


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "ContextConfig", "load_config"]
