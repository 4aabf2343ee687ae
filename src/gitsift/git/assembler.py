"""Patch assembly — fetch ``git show`` output per commit, in order."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Union

from gitsift.git.diagnostics import DEFAULT_RULES, DiagnosticRule, classify_output, fatal_lines
from gitsift.git.errors import FetchError, LaunchError
from gitsift.git.models import CommitID, PatchDocument
from gitsift.git.runner import GitRunner, git_args

logger = logging.getLogger(__name__)


class PatchAssembler:
    """Builds one PatchDocument from an ordered commit list.

    Fail-fast: the first commit that cannot be fetched aborts assembly and
    nothing fetched before it is returned.
    """

    def __init__(
        self,
        runner: GitRunner,
        repo_path: Union[str, Path],
        commits: Sequence[CommitID],
        rules: Sequence[DiagnosticRule] = DEFAULT_RULES,
    ) -> None:
        self._runner = runner
        self._repo_path = repo_path
        self._commits: List[CommitID] = list(commits)
        self._rules = tuple(rules)

    @property
    def total(self) -> int:
        return len(self._commits)

    @property
    def commits(self) -> List[CommitID]:
        return list(self._commits)

    def fetch(self, commit: CommitID) -> str:
        """Return the zero-context patch for a single commit."""
        try:
            result = self._runner.run(
                git_args(self._repo_path, "show", "-p", "-U0", commit)
            )
        except LaunchError as exc:
            raise FetchError(commit, str(exc)) from exc

        errors = fatal_lines(classify_output(result.stderr, self._rules))
        if errors:
            raise FetchError(commit, errors[0])
        if result.returncode != 0:
            raise FetchError(commit, f"git show exited with status {result.returncode}")
        return result.stdout

    def assemble(self) -> PatchDocument:
        logger.info("Commits count: %d", self.total)
        document = PatchDocument()
        for commit in self._commits:
            patch = self.fetch(commit)
            logger.info("-- Get Commit: %s", commit)
            document.append(commit, patch)
        return document
