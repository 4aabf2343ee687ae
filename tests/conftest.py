"""Shared test fixtures — sample diffs, a fake git runner, temp git repos."""

from __future__ import annotations

import io
import subprocess
import textwrap
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest

from gitsift.git.runner import GitResult


@pytest.fixture
def sample_diff_clean() -> str:
    """A diff adding a small file."""
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_with_password() -> str:
    """A diff adding one line in the middle of a file."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 1234567..abcdef0 100644
        --- a/app.py
        +++ b/app.py
        @@ -10,0 +11,1 @@
        +password = "SuperS3cretP@ssw0rd!"
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A diff with a binary file."""
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        index 0000000..abc1234
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    """A diff with a renamed file."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    """A diff with only file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_submodule() -> str:
    """A diff with submodule pointer change."""
    return textwrap.dedent("""\
        diff --git a/vendor/lib b/vendor/lib
        index abc1234..def5678 160000
        --- a/vendor/lib
        +++ b/vendor/lib
        @@ -1 +1 @@
        -Subproject commit abc1234567890abcdef1234567890abcdef123456
        +Subproject commit def4567890abcdef1234567890abcdef123456ab
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """A diff with 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/data.txt
        @@ -0,0 +1 @@
        +final line without newline
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_log_two_commits() -> str:
    """`git log -p -U0` output for two commits, newest first."""
    return textwrap.dedent("""\
        commit 2222222222222222222222222222222222222222
        Author: Alice Example <alice@example.com>
        Date:   Tue Mar 5 10:00:00 2024 +0000

            Add token to settings

            diff --git a/fake b/fake mentioned in the message body

        diff --git a/settings.py b/settings.py
        index 1111111..2222222 100644
        --- a/settings.py
        +++ b/settings.py
        @@ -3,0 +4,2 @@
        +TOKEN = "abc"
        +DEBUG = True
        diff --git a/README.md b/README.md
        index 3333333..4444444 100644
        --- a/README.md
        +++ b/README.md
        @@ -1 +1 @@
        -# Old title
        +# New title

        commit 1111111111111111111111111111111111111111
        Author: Bob Example <bob@example.com>
        Date:   Mon Mar 4 09:00:00 2024 +0000

            Initial settings

        diff --git a/settings.py b/settings.py
        new file mode 100644
        index 0000000..1111111
        --- /dev/null
        +++ b/settings.py
        @@ -0,0 +1,3 @@
        +import os
        +
        +NAME = "demo"
    """)


# --- Fake git runner ---------------------------------------------------------


class FakeProcess:
    """Stands in for GitProcess with canned stdout/stderr bytes."""

    def __init__(self, args: List[str], stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> None:
        self.args = args
        self.stdout = io.BufferedReader(io.BytesIO(stdout))
        self.stderr = io.BytesIO(stderr)
        self.returncode: Optional[int] = None
        self._code = returncode
        self.killed = False

    def wait(self, timeout: Optional[float] = None) -> int:
        self.returncode = self._code
        return self._code

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9


class FakeRunner:
    """Records every git invocation and answers from canned handlers.

    *stream* maps an argv to ``(stdout, stderr)`` for ``start``; *capture*
    maps an argv to a GitResult for ``run``.
    """

    def __init__(
        self,
        stream: Optional[Callable[[List[str]], tuple]] = None,
        capture: Optional[Callable[[List[str]], GitResult]] = None,
    ) -> None:
        self._stream = stream or (lambda args: (b"", b""))
        self._capture = capture or (lambda args: GitResult(args, 0, "", ""))
        self.started: List[List[str]] = []
        self.ran: List[List[str]] = []
        self.processes: List[FakeProcess] = []

    def start(self, args: Sequence[str], cwd=None) -> FakeProcess:
        argv = list(args)
        self.started.append(argv)
        out = self._stream(argv)
        stdout, stderr = out[0], out[1]
        code = out[2] if len(out) > 2 else 0
        proc = FakeProcess(argv, stdout, stderr, code)
        self.processes.append(proc)
        return proc

    def run(self, args: Sequence[str], cwd=None) -> GitResult:
        argv = list(args)
        self.ran.append(argv)
        return self._capture(argv)


@pytest.fixture
def fake_runner_factory() -> Callable[..., FakeRunner]:
    return FakeRunner


# --- Real repositories -------------------------------------------------------


def git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout


def _commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit on ``main``."""
    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo, "config", "user.email", "test@test.com")
    git(repo, "config", "user.name", "Test")
    git(repo, "config", "commit.gpgsign", "false")
    _commit_file(repo, "README.md", "# Test\n", "init")
    return repo


@pytest.fixture
def feature_repo(tmp_git_repo: Path) -> Path:
    """``main`` plus a ``feature`` branch carrying three extra commits."""
    repo = tmp_git_repo
    git(repo, "checkout", "-q", "-b", "feature")
    _commit_file(repo, "one.txt", "first\n", "feature one")
    _commit_file(repo, "two.txt", "second\n", "feature two")
    _commit_file(repo, "three.txt", "third\n", "feature three")
    git(repo, "checkout", "-q", "main")
    return repo


@pytest.fixture
def git_cmd() -> Callable[..., str]:
    return git
