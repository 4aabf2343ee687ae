"""Collected outcome of one acquisition, for reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from gitsift.git.models import CommitID, FileChange


@dataclass
class AcquisitionResult:
    mode: str  # 'commits' | 'log' | 'diff'
    changes: List[FileChange] = field(default_factory=list)
    commits: Optional[List[CommitID]] = None  # resolved list in 'commits' mode
    warnings: List[str] = field(default_factory=list)  # ignorable git diagnostics
    duration_ms: float = 0.0

    @property
    def total_files(self) -> int:
        return len(self.changes)

    @property
    def total_commits(self) -> int:
        if self.commits is not None:
            return len(self.commits)
        return len({c.commit.sha for c in self.changes if c.commit is not None})

    @property
    def added_lines(self) -> int:
        return sum(sum(1 for _ in c.added_lines) for c in self.changes)

    @property
    def removed_lines(self) -> int:
        return sum(sum(1 for _ in c.removed_lines) for c in self.changes)
