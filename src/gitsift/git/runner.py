"""Git subprocess wrapper — streaming and captured invocations."""

from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import IO, List, Optional, Sequence, Union

from gitsift.git.errors import LaunchError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _decode(data: bytes) -> str:
    # Decoded without newline translation: a bare CR stays inside its line.
    return data.decode("utf-8", errors="replace")


def git_args(repo_path: PathLike, *args: str) -> List[str]:
    """Prefix *args* with ``-C <repo>`` after checking the directory exists."""
    clean = os.path.normpath(str(repo_path))
    if not os.path.isdir(clean):
        raise LaunchError(f"working directory does not exist: {clean}")
    return ["-C", clean, *args]


@dataclass(frozen=True)
class GitResult:
    """Fully drained output of a finished git command."""

    args: List[str]
    returncode: int
    stdout: str
    stderr: str


class GitProcess:
    """A running git process with independent stdout/stderr pipes.

    The caller owns draining both pipes; a child blocked on a full stderr
    pipe never finishes writing stdout.
    """

    def __init__(self, popen: subprocess.Popen) -> None:
        self._popen = popen

    @property
    def args(self) -> List[str]:
        return list(self._popen.args)

    @property
    def stdout(self) -> IO[bytes]:
        assert self._popen.stdout is not None
        return self._popen.stdout

    @property
    def stderr(self) -> IO[bytes]:
        assert self._popen.stderr is not None
        return self._popen.stderr

    @property
    def returncode(self) -> Optional[int]:
        return self._popen.returncode

    def wait(self, timeout: Optional[float] = None) -> int:
        return self._popen.wait(timeout=timeout)

    def kill(self) -> None:
        if self._popen.poll() is None:
            self._popen.kill()
            self._popen.wait()


class GitRunner:
    """Starts git commands. One instance is shared by a whole acquisition."""

    def __init__(self, executable: str = "git", timeout: int = 120) -> None:
        self.executable = executable
        self.timeout = timeout

    def _command(self, args: Sequence[str]) -> List[str]:
        return [self.executable, *args]

    def start(self, args: Sequence[str], cwd: Optional[PathLike] = None) -> GitProcess:
        """Start git without waiting for output. Raises LaunchError."""
        cmd = self._command(args)
        logger.debug("executing: %s", " ".join(cmd))
        try:
            popen = subprocess.Popen(
                cmd,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise LaunchError(f"{self.executable} is not installed or not on PATH") from exc
        except PermissionError as exc:
            raise LaunchError(f"permission denied running {self.executable}") from exc
        except OSError as exc:
            raise LaunchError(f"failed to start {self.executable}: {exc}") from exc
        return GitProcess(popen)

    def run(self, args: Sequence[str], cwd: Optional[PathLike] = None) -> GitResult:
        """Run git to completion and capture both streams. Raises LaunchError."""
        cmd = self._command(args)
        logger.debug("executing: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise LaunchError(f"{self.executable} is not installed or not on PATH") from exc
        except PermissionError as exc:
            raise LaunchError(f"permission denied running {self.executable}") from exc
        except subprocess.TimeoutExpired as exc:
            raise LaunchError(
                f"git command timed out after {self.timeout}s: git {' '.join(args)}"
            ) from exc
        except OSError as exc:
            raise LaunchError(f"failed to start {self.executable}: {exc}") from exc
        return GitResult(
            args=list(args),
            returncode=result.returncode,
            stdout=_decode(result.stdout),
            stderr=_decode(result.stderr),
        )
