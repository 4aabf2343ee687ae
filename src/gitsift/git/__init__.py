"""Git interface layer — process runner, diagnostics, commit resolution, streaming."""

from gitsift.git.assembler import PatchAssembler
from gitsift.git.diagnostics import (
    DEFAULT_RULES,
    DiagnosticMonitor,
    DiagnosticRule,
    build_rules,
    classify,
)
from gitsift.git.diff_parser import PatchParser
from gitsift.git.errors import (
    DiagnosticFatal,
    FetchError,
    GitSourceError,
    LaunchError,
    PatchParseError,
    ResolutionError,
)
from gitsift.git.models import (
    CommitID,
    CommitInfo,
    DiagnosticKind,
    DiagnosticLine,
    DiffLine,
    FileChange,
    FileStatus,
    Hunk,
    LineType,
    PatchDocument,
    RangeSpec,
)
from gitsift.git.resolver import parse_commit_lines, resolve_commits
from gitsift.git.runner import GitProcess, GitResult, GitRunner, git_args
from gitsift.git.stream import PatchStream, git_diff, git_log

__all__ = [
    "DEFAULT_RULES",
    "CommitID",
    "CommitInfo",
    "DiagnosticFatal",
    "DiagnosticKind",
    "DiagnosticLine",
    "DiagnosticMonitor",
    "DiagnosticRule",
    "DiffLine",
    "FetchError",
    "FileChange",
    "FileStatus",
    "GitProcess",
    "GitResult",
    "GitRunner",
    "GitSourceError",
    "Hunk",
    "LaunchError",
    "LineType",
    "PatchAssembler",
    "PatchDocument",
    "PatchParseError",
    "PatchParser",
    "PatchStream",
    "RangeSpec",
    "ResolutionError",
    "build_rules",
    "classify",
    "git_args",
    "git_diff",
    "git_log",
    "parse_commit_lines",
    "resolve_commits",
]
