"""Configuration loaded from `.novelscript/config.yml`.

Missing file -> defaults. Missing keys -> defaults. Unknown keys are
ignored. A value of the wrong type is a ConfigError.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from novelscript.errors import ConfigError


CONFIG_DIR = ".novelscript"
CONFIG_FILE = "config.yml"


@dataclass(frozen=True)
class EditorConfig:
    reparse_delay: float = 2.0
    playable_tags: tuple[str, ...] = ("BGM", "SFX", "VS")


@dataclass(frozen=True)
class QueryConfig:
    max_steps: int = 100_000
    timeout_seconds: float = 2.0
    default_expression: str = "doc.scenes"


@dataclass(frozen=True)
class EstimatesConfig:
    seconds_per_line: float = 60 / 55


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    file: str = "tui.log"


@dataclass(frozen=True)
class Config:
    editor: EditorConfig = field(default_factory=EditorConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    estimates: EstimatesConfig = field(default_factory=EstimatesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    theme: dict[str, str] = field(default_factory=dict)
    cue_tags: tuple[str, ...] = ("BGM", "VS", "TRANS", "SAVE", "SFX", "CHYRON")
    # Directory holding config.yml (and the TUI log); None when running on defaults.
    config_dir: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("config_dir")
        data["editor"]["playable_tags"] = list(self.editor.playable_tags)
        data["cue_tags"] = list(self.cue_tags)
        return data


def config_path(work_dir: Path | None = None) -> Path:
    return (work_dir or Path.cwd()) / CONFIG_DIR / CONFIG_FILE


def load_config(path: Path | None = None) -> Config:
    """Load config from `path`, or from ./.novelscript/config.yml if present."""
    explicit = path is not None
    path = path or config_path()
    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return Config()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Invalid config file {path}: expected a mapping at top level")
    return config_from_dict(raw, config_dir=path.parent)


def config_from_dict(raw: dict, config_dir: Path | None = None) -> Config:
    editor = _section(raw, "editor")
    query = _section(raw, "query")
    estimates = _section(raw, "estimates")
    log = _section(raw, "logging")
    defaults = Config()

    theme = raw.get("theme") or {}
    if not isinstance(theme, dict):
        raise ConfigError("theme: expected a mapping of class -> style")

    return Config(
        editor=EditorConfig(
            reparse_delay=_number(editor, "reparse_delay", defaults.editor.reparse_delay, "editor"),
            playable_tags=_str_list(editor, "playable_tags", defaults.editor.playable_tags, "editor"),
        ),
        query=QueryConfig(
            max_steps=int(_number(query, "max_steps", defaults.query.max_steps, "query")),
            timeout_seconds=_number(query, "timeout_seconds", defaults.query.timeout_seconds, "query"),
            default_expression=str(query.get("default_expression", defaults.query.default_expression)),
        ),
        estimates=EstimatesConfig(
            seconds_per_line=_number(
                estimates, "seconds_per_line", defaults.estimates.seconds_per_line, "estimates"
            ),
        ),
        logging=LoggingConfig(
            level=str(log.get("level", defaults.logging.level)).upper(),
            file=str(log.get("file", defaults.logging.file)),
        ),
        theme={str(k): str(v) for k, v in theme.items()},
        cue_tags=_str_list(raw, "cue_tags", defaults.cue_tags, "top level"),
        config_dir=config_dir,
    )


def write_default_config(work_dir: Path) -> Path:
    path = config_path(work_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(Config().to_dict(), f, sort_keys=False)
    return path


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name}: expected a mapping")
    return value


def _number(section: dict, key: str, default: float, where: str) -> float:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{where}.{key}: expected a number, got {value!r}")
    return float(value) if isinstance(default, float) else value


def _str_list(section: dict, key: str, default: tuple[str, ...], where: str) -> tuple[str, ...]:
    value = section.get(key)
    if value is None:
        return default
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{where}.{key}: expected a list of strings")
    return tuple(value)
