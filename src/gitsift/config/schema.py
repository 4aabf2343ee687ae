"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

OutputFormat = Literal["terminal", "json"]

OUTPUT_FORMATS: tuple[str, ...] = ("terminal", "json")


@dataclass
class GitConfig:
    executable: str = "git"
    timeout: int = 120  # seconds, for captured commands (range query, git show)


@dataclass
class RequestConfig:
    """Merge/pull request comparison: commits on source_branch not on target_branch."""

    source_branch: str = ""
    target_branch: str = ""


@dataclass
class CommitsConfig:
    file: Optional[str] = None  # `git log --format=oneline` style, one commit per line


@dataclass
class LogConfig:
    opts: Optional[str] = None  # replaces the default `--full-history --all`


@dataclass
class DiffConfig:
    staged: bool = False


@dataclass
class DiagnosticsConfig:
    ignore: List[str] = field(default_factory=list)  # extra benign stderr substrings


@dataclass
class OutputConfig:
    format: OutputFormat = "terminal"
    show_summary: bool = True


@dataclass
class GitSiftConfig:
    version: str = "1.0"
    git: GitConfig = field(default_factory=GitConfig)
    request: RequestConfig = field(default_factory=RequestConfig)
    commits: CommitsConfig = field(default_factory=CommitsConfig)
    log: LogConfig = field(default_factory=LogConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
