"""
config.py

Responsibility: Load the optional `.pkg-scripts.yml` file at the project root into a typed model.

A missing file yields the defaults. Unknown keys are ignored so that the file can be
shared with other tooling; known keys with the wrong type are rejected.

Environment overrides:
- PKG_SCRIPTS_LOG_LEVEL: replaces `log_level`
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from pkg_scripts.tools import DEFAULT_INSTALLER

CONFIG_NAME = ".pkg-scripts.yml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class DocsConfig:
    """Docs page settings."""

    title: str | None = None


@dataclass(frozen=True)
class Config:
    """Per-project settings for pkg-scripts."""

    log_level: str = "WARNING"
    installer: tuple[str, ...] = DEFAULT_INSTALLER
    docs: DocsConfig = field(default_factory=DocsConfig)


def _parse_installer(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return DEFAULT_INSTALLER
    if isinstance(raw, str):
        parts = raw.split()
    elif isinstance(raw, list) and all(isinstance(p, str) for p in raw):
        parts = [p.strip() for p in raw if p.strip()]
    else:
        raise ConfigError("`installer` must be a string or a list of strings.")
    if not parts:
        raise ConfigError("`installer` must not be empty.")
    return tuple(parts)


def _parse_log_level(raw: Any) -> str:
    level = str(raw).strip().upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"`log_level` must be one of {', '.join(sorted(_LOG_LEVELS))}; got {raw!r}")
    return level


def parse_config(data: Mapping[str, Any] | None, env: Mapping[str, str] | None = None) -> Config:
    """
    Build a `Config` from a parsed YAML mapping and environment overrides.
    """
    data = data or {}
    env = os.environ if env is None else env

    level_raw = env.get("PKG_SCRIPTS_LOG_LEVEL") or data.get("log_level") or "WARNING"
    log_level = _parse_log_level(level_raw)

    installer = _parse_installer(data.get("installer"))

    docs_raw = data.get("docs") or {}
    if not isinstance(docs_raw, dict):
        raise ConfigError("`docs` must be an object/mapping when provided.")
    title = docs_raw.get("title")
    if title is not None:
        title = str(title).strip() or None

    return Config(log_level=log_level, installer=installer, docs=DocsConfig(title=title))


def load_config(root: Path, env: Mapping[str, str] | None = None) -> Config:
    path = root / CONFIG_NAME
    if not path.exists():
        return parse_config(None, env)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"{path} must be a mapping/object at the top level.")
    return parse_config(data, env)
