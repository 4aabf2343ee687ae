"""Tests for the git process runner."""

import os
from pathlib import Path

import pytest

from gitsift.git.errors import LaunchError
from gitsift.git.runner import GitRunner, git_args


class TestGitArgs:
    def test_prefixes_clean_directory(self, tmp_path: Path):
        args = git_args(str(tmp_path) + "/./", "log", "-p")
        assert args == ["-C", os.path.normpath(str(tmp_path)), "log", "-p"]

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(LaunchError, match="does not exist"):
            git_args(tmp_path / "nope", "log")


class TestRun:
    def test_captures_stdout(self, tmp_git_repo: Path):
        result = GitRunner().run(git_args(tmp_git_repo, "rev-parse", "--abbrev-ref", "HEAD"))
        assert result.returncode == 0
        assert result.stdout.strip() == "main"

    def test_nonzero_exit_is_returned_not_raised(self, tmp_git_repo: Path):
        result = GitRunner().run(git_args(tmp_git_repo, "show", "does-not-exist"))
        assert result.returncode != 0
        assert "does-not-exist" in result.stderr

    def test_missing_binary(self, tmp_path: Path):
        runner = GitRunner(executable="gitsift-no-such-binary")
        with pytest.raises(LaunchError, match="not installed"):
            runner.run(["--version"], cwd=tmp_path)


class TestStart:
    def test_streams_are_independent(self, tmp_git_repo: Path):
        proc = GitRunner().start(git_args(tmp_git_repo, "log", "--format=%s"))
        out = proc.stdout.read()
        err = proc.stderr.read()
        assert proc.wait() == 0
        assert out == b"init\n"
        assert err == b""

    def test_stderr_separate_from_stdout(self, tmp_git_repo: Path):
        proc = GitRunner().start(git_args(tmp_git_repo, "show", "no-such-ref"))
        out = proc.stdout.read()
        err = proc.stderr.read()
        proc.wait()
        assert out == b""
        assert b"no-such-ref" in err

    def test_missing_binary(self, tmp_path: Path):
        runner = GitRunner(executable="gitsift-no-such-binary")
        with pytest.raises(LaunchError):
            runner.start(["--version"], cwd=tmp_path)

    def test_kill_is_idempotent(self, tmp_git_repo: Path):
        proc = GitRunner().start(git_args(tmp_git_repo, "log", "-p"))
        proc.kill()
        proc.kill()
        assert proc.returncode is not None
        proc.stdout.close()
        proc.stderr.close()
