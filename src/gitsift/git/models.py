"""Data models for commit resolution, patch assembly, and diff parsing."""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Iterator, List, Optional, Tuple

CommitID = str


class LineType(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CONTEXT = "context"


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    MODE_CHANGED = "mode_changed"


class DiagnosticKind(str, Enum):
    IGNORABLE = "ignorable"
    FATAL = "fatal"


@dataclass(frozen=True)
class RangeSpec:
    """Source/target branch pair for merge-request style comparisons."""

    source: str = ""
    target: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.source) and bool(self.target)

    @property
    def revision_range(self) -> str:
        """``target..source`` — commits reachable from source but not target."""
        return f"{self.target}..{self.source}"


@dataclass(frozen=True, slots=True)
class DiagnosticLine:
    """One classified line of git stderr."""

    text: str
    kind: DiagnosticKind

    @property
    def is_fatal(self) -> bool:
        return self.kind == DiagnosticKind.FATAL


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single parsed line from a unified diff."""

    file: str
    line_no: int  # new-side number for added/context, old-side for removed
    content: str
    line_type: LineType


@dataclass
class Hunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: List[DiffLine] = field(default_factory=list)


@dataclass(frozen=True)
class CommitInfo:
    """Commit attribution taken from a ``commit <sha>`` header."""

    sha: str
    author: str = ""
    email: str = ""
    date: str = ""
    message: str = ""

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass
class FileChange:
    """All changes to one file within one patch (a commit or a working-tree diff)."""

    path: str
    old_path: Optional[str] = None  # set on renames and copies
    status: FileStatus = FileStatus.MODIFIED
    hunks: List[Hunk] = field(default_factory=list)
    is_binary: bool = False
    commit: Optional[CommitInfo] = None

    @property
    def added_lines(self) -> Iterator[DiffLine]:
        for hunk in self.hunks:
            for line in hunk.lines:
                if line.line_type == LineType.ADDED:
                    yield line

    @property
    def removed_lines(self) -> Iterator[DiffLine]:
        for hunk in self.hunks:
            for line in hunk.lines:
                if line.line_type == LineType.REMOVED:
                    yield line


@dataclass
class PatchDocument:
    """Concatenated ``git show`` output for an ordered list of commits."""

    blocks: List[Tuple[CommitID, str]] = field(default_factory=list)

    def append(self, commit: CommitID, patch: str) -> None:
        self.blocks.append((commit, patch))

    @property
    def commits(self) -> List[CommitID]:
        return [commit for commit, _ in self.blocks]

    def _non_empty(self) -> List[str]:
        out: List[str] = []
        for _, patch in self.blocks:
            if not patch:
                continue
            out.append(patch if patch.endswith("\n") else patch + "\n")
        return out

    @property
    def separator_count(self) -> int:
        return max(len(self._non_empty()) - 1, 0)

    @property
    def text(self) -> str:
        # Every block ends in a newline, so joining on "\n" leaves exactly
        # one blank line between consecutive blocks.
        return "\n".join(self._non_empty())

    def open(self) -> BinaryIO:
        """Return a buffered binary stream over the document."""
        return io.BufferedReader(io.BytesIO(self.text.encode("utf-8")))
