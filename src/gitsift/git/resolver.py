"""Commit resolution for merge-request (branch pair) and commit-list modes."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

from gitsift.git.diagnostics import DEFAULT_RULES, DiagnosticRule, classify_output, fatal_lines
from gitsift.git.errors import LaunchError, ResolutionError
from gitsift.git.models import CommitID, RangeSpec
from gitsift.git.runner import GitRunner, git_args

logger = logging.getLogger(__name__)


def parse_commit_lines(text: str) -> List[CommitID]:
    """Return the first whitespace-delimited token of every non-blank line.

    Accepts ``git log --format=oneline`` output, so ``<sha> <subject>``
    lines reduce to ``<sha>``.
    """
    commits: List[CommitID] = []
    for line in text.splitlines():
        words = line.split()
        if words:
            commits.append(words[0])
    return commits


def commits_between(
    repo_path: Union[str, Path],
    range_spec: RangeSpec,
    runner: GitRunner,
    rules: Sequence[DiagnosticRule] = DEFAULT_RULES,
) -> List[CommitID]:
    """Commits reachable from ``range_spec.source`` but not ``range_spec.target``.

    Returned newest first, in git's traversal order.
    """
    try:
        args = git_args(
            repo_path,
            "log",
            "--format=oneline",
            "--right-only",
            range_spec.revision_range,
        )
        result = runner.run(args)
    except LaunchError as exc:
        raise ResolutionError(f"could not list commits for {range_spec.revision_range}: {exc}") from exc

    errors = fatal_lines(classify_output(result.stderr, rules))
    if errors:
        raise ResolutionError(f"git log {range_spec.revision_range} failed: {errors[0]}")
    if result.returncode != 0:
        raise ResolutionError(
            f"git log {range_spec.revision_range} exited with status {result.returncode}"
        )
    return parse_commit_lines(result.stdout)


def commits_from_file(path: Union[str, Path]) -> List[CommitID]:
    """Read commit ids from *path*, one per line, id first."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ResolutionError(f"could not read commits file {path}: {exc}") from exc
    return parse_commit_lines(text)


def resolve_commits(
    repo_path: Union[str, Path],
    range_spec: Optional[RangeSpec],
    commits_file: Optional[Union[str, Path]],
    runner: GitRunner,
    rules: Sequence[DiagnosticRule] = DEFAULT_RULES,
) -> Optional[List[CommitID]]:
    """Resolve the explicit commit set, or None when neither source is configured.

    Branch-pair commits come first, then the file's. Duplicates are kept.
    """
    enabled = False
    commits: List[CommitID] = []

    if range_spec is not None and range_spec.enabled:
        commits.extend(commits_between(repo_path, range_spec, runner, rules))
        enabled = True

    if commits_file:
        commits.extend(commits_from_file(commits_file))
        enabled = True

    if not enabled:
        return None
    return commits
