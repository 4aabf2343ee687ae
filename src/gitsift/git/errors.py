"""Error taxonomy for git acquisition."""

from __future__ import annotations

from typing import List, Optional


class GitSourceError(Exception):
    """Base class for every failure raised while acquiring git data."""


class LaunchError(GitSourceError):
    """Raised when git cannot be started (missing binary, permissions, bad cwd)."""


class ResolutionError(GitSourceError):
    """Raised when the commit list cannot be resolved from a branch pair or file."""


class FetchError(GitSourceError):
    """Raised when a single commit's patch cannot be retrieved."""

    def __init__(self, commit: str, reason: str) -> None:
        self.commit = commit
        self.reason = reason
        super().__init__(f"failed to fetch commit {commit}: {reason}")


class DiagnosticFatal(GitSourceError):
    """Raised when git reported a non-ignorable line on stderr.

    Git keeps writing to stdout after some internal failures, so records
    produced alongside a fatal line cannot be trusted.
    """

    def __init__(self, lines: List[str]) -> None:
        self.lines = list(lines)
        first = self.lines[0] if self.lines else "unknown error"
        extra = f" (+{len(self.lines) - 1} more)" if len(self.lines) > 1 else ""
        super().__init__(f"git reported a fatal error: {first}{extra}")


class PatchParseError(GitSourceError):
    """Raised when the patch document is malformed."""

    def __init__(self, message: str, line_no: Optional[int] = None) -> None:
        self.line_no = line_no
        where = f"line {line_no}: " if line_no is not None else ""
        super().__init__(f"{where}{message}")
