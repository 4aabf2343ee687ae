"""Acquisition entry points — turn git history or the working tree into FileChange records.

Three mutually exclusive modes feed one parser:

* ``commits`` — an explicit commit set from a branch pair and/or a commits
  file, fetched one ``git show`` at a time and concatenated in order.
* ``log`` — a single streaming ``git log -p`` over the full history (or
  caller-supplied log options).
* ``diff`` — a streaming ``git diff`` of the working tree or the index.

For streaming modes stderr is drained concurrently by a DiagnosticMonitor.
Its verdict is checked when the record stream is exhausted: a fatal line
raises DiagnosticFatal even if every record parsed cleanly.
"""

from __future__ import annotations

import io
import logging
import shlex
from pathlib import Path
from typing import IO, Iterator, List, Optional, Union

from gitsift.config.schema import GitSiftConfig
from gitsift.git.assembler import PatchAssembler
from gitsift.git.diagnostics import DiagnosticMonitor, build_rules
from gitsift.git.diff_parser import PatchParser
from gitsift.git.errors import DiagnosticFatal, PatchParseError
from gitsift.git.models import CommitID, FileChange, RangeSpec
from gitsift.git.resolver import resolve_commits
from gitsift.git.runner import GitProcess, GitRunner, git_args

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

DEFAULT_LOG_ARGS = ("--full-history", "--all")


def _wait_until_readable(stream: IO[bytes]) -> None:
    """Block until *stream* has buffered data or has reached EOF.

    ``peek`` returns as soon as the child has written its first bytes (or
    closed the pipe), so the parser is never handed a pipe that has not
    started producing.
    """
    peek = getattr(stream, "peek", None)
    if peek is not None:
        peek(1)


class PatchStream:
    """Lazy, finite, non-restartable iterator of FileChange records.

    Usage::

        with git_log(repo, config=cfg) as changes:
            for change in changes:
                ...

    Iteration ends by raising DiagnosticFatal when git reported a fatal
    error on stderr, or PatchParseError on a malformed document.
    """

    def __init__(
        self,
        stdout: IO[bytes],
        *,
        mode: str,
        process: Optional[GitProcess] = None,
        monitor: Optional[DiagnosticMonitor] = None,
        commits: Optional[List[CommitID]] = None,
    ) -> None:
        self.mode = mode
        self.commits = commits
        self._stdout = stdout
        self._process = process
        self._monitor = monitor
        self._records: Optional[Iterator[FileChange]] = None
        self._finished = False

    @property
    def process(self) -> Optional[GitProcess]:
        return self._process

    @property
    def monitor(self) -> Optional[DiagnosticMonitor]:
        return self._monitor

    def __iter__(self) -> "PatchStream":
        return self

    def __next__(self) -> FileChange:
        if self._finished:
            raise StopIteration
        if self._records is None:
            text = io.TextIOWrapper(
                self._stdout, encoding="utf-8", errors="replace", newline="\n"
            )
            self._records = PatchParser(text).parse()
        try:
            return next(self._records)
        except StopIteration:
            self._finish()
            raise
        except PatchParseError as exc:
            self._abort()
            if self._monitor is not None and self._monitor.failed:
                raise DiagnosticFatal(self._monitor.fatal_lines) from exc
            raise

    def _finish(self) -> None:
        self._finished = True
        if self._process is not None:
            code = self._process.wait()
            logger.debug("git exited with status %s", code)
        if self._monitor is not None:
            self._monitor.join()
        self._release_stderr()
        if self._monitor is not None:
            self._monitor.raise_for_fatal()

    def _abort(self) -> None:
        self._finished = True
        if self._process is not None:
            self._process.kill()
        if self._monitor is not None:
            self._monitor.join()
        self._release_stderr()

    def _release_stderr(self) -> None:
        if self._process is not None:
            self._process.stderr.close()

    def close(self) -> None:
        """Stop reading and kill the underlying git process, if any."""
        if not self._finished:
            self._abort()
        self._stdout.close()

    def __enter__(self) -> "PatchStream":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _attach(
    process: GitProcess,
    *,
    mode: str,
    config: GitSiftConfig,
) -> PatchStream:
    """Start stderr classification, wait for stdout readiness, hand off to the parser."""
    monitor = DiagnosticMonitor(
        process.stderr, build_rules(config.diagnostics.ignore)
    ).start()
    _wait_until_readable(process.stdout)
    return PatchStream(process.stdout, mode=mode, process=process, monitor=monitor)


def _runner_for(config: GitSiftConfig, runner: Optional[GitRunner]) -> GitRunner:
    if runner is not None:
        return runner
    return GitRunner(executable=config.git.executable, timeout=config.git.timeout)


def log_command(repo_path: PathLike, log_opts: Optional[str] = None) -> List[str]:
    """Build the ``git log -p`` argument vector."""
    if log_opts:
        return git_args(repo_path, "log", "-p", "-U0", *shlex.split(log_opts))
    return git_args(repo_path, "log", "-p", "-U0", *DEFAULT_LOG_ARGS)


def diff_command(repo_path: PathLike, staged: bool = False) -> List[str]:
    """Build the ``git diff`` argument vector."""
    if staged:
        return git_args(repo_path, "diff", "-U0", "--staged", ".")
    return git_args(repo_path, "diff", "-U0", ".")


def git_log(
    repo_path: PathLike,
    log_opts: Optional[str] = None,
    *,
    config: GitSiftConfig,
    runner: Optional[GitRunner] = None,
) -> PatchStream:
    """Stream FileChange records from history.

    Uses the explicit commit set when ``config.request`` or
    ``config.commits`` configures one, otherwise ``git log -p``.
    """
    runner = _runner_for(config, runner)
    rules = build_rules(config.diagnostics.ignore)

    range_spec = RangeSpec(
        source=config.request.source_branch,
        target=config.request.target_branch,
    )
    commits = resolve_commits(
        repo_path, range_spec, config.commits.file, runner, rules
    )
    if commits is not None:
        document = PatchAssembler(runner, repo_path, commits, rules).assemble()
        return PatchStream(document.open(), mode="commits", commits=commits)

    opts = log_opts if log_opts is not None else config.log.opts
    process = runner.start(log_command(repo_path, opts))
    return _attach(process, mode="log", config=config)


def git_diff(
    repo_path: PathLike,
    staged: bool = False,
    *,
    config: GitSiftConfig,
    runner: Optional[GitRunner] = None,
) -> PatchStream:
    """Stream FileChange records from uncommitted (or staged) changes."""
    runner = _runner_for(config, runner)
    process = runner.start(diff_command(repo_path, staged))
    return _attach(process, mode="diff", config=config)
