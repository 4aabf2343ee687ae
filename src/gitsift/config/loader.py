"""Load and merge configuration from .gitsift.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gitsift.config.schema import (
    OUTPUT_FORMATS,
    CommitsConfig,
    DiagnosticsConfig,
    DiffConfig,
    GitConfig,
    GitSiftConfig,
    LogConfig,
    OutputConfig,
    RequestConfig,
)

CONFIG_FILENAME = ".gitsift.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _merge_env_overrides(cfg: GitSiftConfig) -> None:
    """Apply GITSIFT_* environment variable overrides."""
    if val := os.environ.get("GITSIFT_SOURCE_BRANCH"):
        cfg.request.source_branch = val
    if val := os.environ.get("GITSIFT_TARGET_BRANCH"):
        cfg.request.target_branch = val
    if val := os.environ.get("GITSIFT_COMMITS_FILE"):
        cfg.commits.file = val
    if val := os.environ.get("GITSIFT_LOG_OPTS"):
        cfg.log.opts = val
    if val := os.environ.get("GITSIFT_GIT"):
        cfg.git.executable = val
    if val := os.environ.get("GITSIFT_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: GitSiftConfig) -> None:
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"Invalid output format: {cfg.output.format}")
    ignore = cfg.diagnostics.ignore
    if not isinstance(ignore, list) or not all(isinstance(s, str) for s in ignore):
        raise ConfigError("[diagnostics] ignore must be a list of strings")
    for name, value in (
        ("request.source_branch", cfg.request.source_branch),
        ("request.target_branch", cfg.request.target_branch),
        ("git.executable", cfg.git.executable),
    ):
        if not isinstance(value, str):
            raise ConfigError(f"{name} must be a string")
    for name, value in (("commits.file", cfg.commits.file), ("log.opts", cfg.log.opts)):
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"{name} must be a string")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> GitSiftConfig:
    """Load, validate, and return a GitSiftConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = GitSiftConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = GitSiftConfig(
            version=raw.get("version", "1.0"),
            git=_build_section(raw, GitConfig, "git"),
            request=_build_section(raw, RequestConfig, "request"),
            commits=_build_section(raw, CommitsConfig, "commits"),
            log=_build_section(raw, LogConfig, "log"),
            diff=_build_section(raw, DiffConfig, "diff"),
            diagnostics=_build_section(raw, DiagnosticsConfig, "diagnostics"),
            output=_build_section(raw, OutputConfig, "output"),
        )
        _validate(cfg)

    _merge_env_overrides(cfg)
    return cfg
