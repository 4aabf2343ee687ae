"""Tests for per-commit patch assembly."""

import logging
from pathlib import Path

import pytest

from gitsift.git.assembler import PatchAssembler
from gitsift.git.errors import FetchError
from gitsift.git.models import PatchDocument
from gitsift.git.runner import GitResult


def _patch(commit: str) -> str:
    return (
        f"commit {commit}\n"
        "Author: T <t@example.com>\n"
        "\n"
        f"    change {commit}\n"
        "\n"
        f"diff --git a/{commit}.txt b/{commit}.txt\n"
        "new file mode 100644\n"
        "--- /dev/null\n"
        f"+++ b/{commit}.txt\n"
        "@@ -0,0 +1 @@\n"
        f"+{commit}\n"
    )


def _show_runner(factory, patches):
    def capture(args):
        commit = args[-1]
        value = patches[commit]
        if isinstance(value, GitResult):
            return value
        return GitResult(args, 0, value, "")
    return factory(capture=capture)


class TestPatchDocument:
    def test_separators_between_blocks(self):
        doc = PatchDocument()
        for c in ("a1", "b2", "c3"):
            doc.append(c, _patch(c))
        assert doc.separator_count == 2
        assert doc.text.count("\n\ncommit ") == 2
        assert not doc.text.startswith("\n")
        assert doc.text.endswith("+c3\n")

    def test_empty_blocks_skipped(self):
        doc = PatchDocument()
        doc.append("a1", "x\n")
        doc.append("b2", "")
        doc.append("c3", "y")
        assert doc.text == "x\n\ny\n"
        assert doc.separator_count == 1
        assert doc.commits == ["a1", "b2", "c3"]

    def test_single_block_has_no_separator(self):
        doc = PatchDocument()
        doc.append("a1", "x\n")
        assert doc.text == "x\n"
        assert doc.separator_count == 0

    def test_open_is_readable_bytes(self):
        doc = PatchDocument()
        doc.append("a1", "héllo\n")
        stream = doc.open()
        assert stream.peek(1)
        assert stream.read() == "héllo\n".encode("utf-8")


class TestAssembler:
    def test_fetches_in_list_order(self, tmp_path: Path, fake_runner_factory):
        commits = ["c3", "a1", "b2"]
        runner = _show_runner(fake_runner_factory, {c: _patch(c) for c in commits})
        doc = PatchAssembler(runner, tmp_path, commits).assemble()
        assert [args[-1] for args in runner.ran] == commits
        assert doc.commits == commits
        positions = [doc.text.index(f"commit {c}") for c in commits]
        assert positions == sorted(positions)
        assert doc.separator_count == len(commits) - 1

    def test_show_command_shape(self, tmp_path: Path, fake_runner_factory):
        runner = _show_runner(fake_runner_factory, {"a1": _patch("a1")})
        PatchAssembler(runner, tmp_path, ["a1"]).assemble()
        assert runner.ran[0][2:] == ["show", "-p", "-U0", "a1"]

    def test_total_logged_before_fetch(self, tmp_path: Path, fake_runner_factory, caplog):
        caplog.set_level(logging.INFO, logger="gitsift")
        runner = _show_runner(fake_runner_factory, {c: _patch(c) for c in ("a1", "b2")})
        assembler = PatchAssembler(runner, tmp_path, ["a1", "b2"])
        assert assembler.total == 2
        assembler.assemble()
        messages = [r.getMessage() for r in caplog.records]
        assert messages[0] == "Commits count: 2"

    def test_fail_fast_on_fatal_stderr(self, tmp_path: Path, fake_runner_factory):
        patches = {
            "a1": _patch("a1"),
            "bad": GitResult([], 128, "", "fatal: bad object bad\n"),
            "c3": _patch("c3"),
        }
        runner = _show_runner(fake_runner_factory, patches)
        with pytest.raises(FetchError) as excinfo:
            PatchAssembler(runner, tmp_path, ["a1", "bad", "c3"]).assemble()
        assert excinfo.value.commit == "bad"
        assert "bad object" in str(excinfo.value)
        assert [args[-1] for args in runner.ran] == ["a1", "bad"]

    def test_nonzero_exit_without_stderr(self, tmp_path: Path, fake_runner_factory):
        runner = _show_runner(
            fake_runner_factory, {"a1": GitResult([], 1, "", "")}
        )
        with pytest.raises(FetchError, match="status 1"):
            PatchAssembler(runner, tmp_path, ["a1"]).assemble()

    def test_ignorable_stderr_does_not_fail(self, tmp_path: Path, fake_runner_factory):
        result = GitResult(
            [], 0, _patch("a1"),
            "warning: inexact rename detection was skipped due to too many files.\n",
        )
        runner = _show_runner(fake_runner_factory, {"a1": result})
        doc = PatchAssembler(runner, tmp_path, ["a1"]).assemble()
        assert doc.commits == ["a1"]

    def test_missing_workdir_is_fetch_error(self, tmp_path: Path, fake_runner_factory):
        runner = fake_runner_factory()
        with pytest.raises(FetchError):
            PatchAssembler(runner, tmp_path / "gone", ["a1"]).assemble()

    def test_empty_list(self, tmp_path: Path, fake_runner_factory):
        doc = PatchAssembler(fake_runner_factory(), tmp_path, []).assemble()
        assert doc.text == ""
