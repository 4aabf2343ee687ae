"""JSON reporter for CI pipelines and downstream detectors."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from gitsift.git.models import FileChange
from gitsift.output.result import AcquisitionResult


def change_to_dict(change: FileChange) -> Dict[str, Any]:
    """Convert a FileChange to a JSON-serialisable dict."""
    commit = change.commit
    return {
        "path": change.path,
        **({"old_path": change.old_path} if change.old_path else {}),
        "status": change.status.value,
        "binary": change.is_binary,
        **({
            "commit": {
                "sha": commit.sha,
                "author": commit.author,
                "email": commit.email,
                "date": commit.date,
                "message": commit.message,
            }
        } if commit else {}),
        "hunks": [
            {
                "old_start": h.old_start,
                "old_count": h.old_count,
                "new_start": h.new_start,
                "new_count": h.new_count,
                "lines": [
                    {"type": ln.line_type.value, "line": ln.line_no, "content": ln.content}
                    for ln in h.lines
                ],
            }
            for h in change.hunks
        ],
    }


def to_dict(result: AcquisitionResult) -> Dict[str, Any]:
    changes: List[Dict[str, Any]] = [change_to_dict(c) for c in result.changes]
    return {
        "version": "1.0",
        "mode": result.mode,
        **({"commits": result.commits} if result.commits is not None else {}),
        "total_commits": result.total_commits,
        "total_files": result.total_files,
        "added_lines": result.added_lines,
        "removed_lines": result.removed_lines,
        "warnings": result.warnings,
        "changes": changes,
        "duration_ms": result.duration_ms,
    }


def render(result: AcquisitionResult) -> str:
    """Return formatted JSON string."""
    return json.dumps(to_dict(result), indent=2)
