"""Streaming unified diff parser — ``git log -p``, ``git show`` and ``git diff`` output.

Reads lines lazily from any iterable and yields one FileChange per file as
soon as the file's last hunk has been read, so memory is bounded by the
largest single file patch rather than the whole history.

Hunks are consumed by their header counts, which keeps commit-message
lines, ``+++``/``---`` lookalikes and ``commit <sha>`` text inside a hunk
from being mistaken for headers. Handles BOM, CRLF, binary markers,
renames, copies, mode-only changes, submodule pointers and all hunk header
variations.
"""

from __future__ import annotations

import io
import re
from typing import Iterable, Iterator, List, Optional

from gitsift.git.errors import PatchParseError
from gitsift.git.models import CommitInfo, DiffLine, FileChange, FileStatus, Hunk, LineType

# --- Regex patterns for diff parsing ---

_COMMIT_RE = re.compile(r"^commit ([0-9a-f]{4,64})\b")
_AUTHOR_RE = re.compile(r"^Author:\s*(.*?)\s*(?:<([^>]*)>)?\s*$")
_DATE_RE = re.compile(r"^(?:Author)?Date:\s*(.*)$")
_QUOTED = r'"(?:[^"\\]|\\.)*"'
_DIFF_HEADER_RE = re.compile(
    rf'^diff --git ({_QUOTED}|a/.*?) ({_QUOTED}|b/.*)$'
)
_COMBINED_HEADER_RE = re.compile(r"^diff --(?:cc|combined) ")
_HUNK_HEADER_RE = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@"
)
_BINARY_RE = re.compile(r"^Binary files .* and .* differ$")
_GIT_BINARY_RE = re.compile(r"^GIT binary patch$")
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_COPY_FROM_RE = re.compile(r"^copy from (.+)$")
_COPY_TO_RE = re.compile(r"^copy to (.+)$")
_SUBPROJECT_RE = re.compile(r"^[+-]?Subproject commit [0-9a-f]+(?:-dirty)?$")
_FILE_HEADER_OLD = re.compile(r'^--- (?:"?a/|/dev/null)')
_FILE_HEADER_NEW = re.compile(r'^\+\+\+ (?:("?b/.*)|/dev/null)')
_C_ESCAPE_RE = re.compile(r"\\([0-7]{3}|.)")
_C_ESCAPES = {"a": 7, "b": 8, "t": 9, "n": 10, "v": 11, "f": 12, "r": 13}
_SIMILARITY_RE = re.compile(r"^(?:dis)?similarity index \d+%$")
_OLD_MODE_RE = re.compile(r"^old mode \d+$")
_NEW_MODE_RE = re.compile(r"^new mode \d+$")
_DELETED_FILE_RE = re.compile(r"^deleted file mode \d+$")
_NEW_FILE_RE = re.compile(r"^new file mode \d+$")
_INDEX_RE = re.compile(r"^index [0-9a-f]+\.\.[0-9a-f]+")


def _strip_bom(line: str) -> str:
    """Remove UTF-8 BOM if present."""
    return line.lstrip("\ufeff")


def _normalise(line: str) -> str:
    """Strip the line terminator (LF or CRLF)."""
    return line.rstrip("\n").rstrip("\r")


def _unquote(path: str) -> str:
    """Undo git's C-style quoting (``core.quotePath``) of a path token."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    body = path[1:-1]
    raw = bytearray()
    pos = 0
    for m in _C_ESCAPE_RE.finditer(body):
        raw += body[pos:m.start()].encode("utf-8")
        esc = m.group(1)
        if len(esc) == 3:
            raw.append(int(esc, 8))
        elif esc in _C_ESCAPES:
            raw.append(_C_ESCAPES[esc])
        else:
            raw += esc.encode("utf-8")
        pos = m.end()
    raw += body[pos:].encode("utf-8")
    return raw.decode("utf-8", errors="replace")


def _header_path(token: str, prefix: str) -> str:
    """Unquote a ``a/...`` or ``b/...`` path token and drop its prefix."""
    path = _unquote(token)
    return path[len(prefix):] if path.startswith(prefix) else path


class _CommitHeader:
    """Accumulates the header block of one ``git log``/``git show`` commit."""

    def __init__(self, sha: str) -> None:
        self.sha = sha
        self.author = ""
        self.email = ""
        self.date = ""
        self.message: List[str] = []

    def feed(self, line: str) -> None:
        if (am := _AUTHOR_RE.match(line)):
            self.author = am.group(1)
            self.email = am.group(2) or ""
        elif (dm := _DATE_RE.match(line)):
            self.date = dm.group(1).strip()
        elif line.startswith("    "):
            self.message.append(line[4:])

    def build(self) -> CommitInfo:
        return CommitInfo(
            sha=self.sha,
            author=self.author,
            email=self.email,
            date=self.date,
            message="\n".join(self.message).strip(),
        )


class _FileState:
    """Mutable per-file state while its sub-headers and hunks are read."""

    def __init__(self, old_path: str, new_path: str) -> None:
        self.old_path = old_path
        self.path = new_path
        self.is_rename = False
        self.is_copy = False
        self.is_new = False
        self.is_deleted = False
        self.is_mode_change = False
        self.is_binary = False
        self.hunks: List[Hunk] = []

    def build(self, commit: Optional[CommitInfo]) -> FileChange:
        if self.is_new:
            status = FileStatus.ADDED
        elif self.is_deleted:
            status = FileStatus.DELETED
        elif self.is_rename:
            status = FileStatus.RENAMED
        elif self.is_copy:
            status = FileStatus.COPIED
        elif self.is_mode_change and not self.hunks and not self.is_binary:
            status = FileStatus.MODE_CHANGED
        else:
            status = FileStatus.MODIFIED
        return FileChange(
            path=self.path,
            old_path=self.old_path if (self.is_rename or self.is_copy) else None,
            status=status,
            hunks=self.hunks,
            is_binary=self.is_binary,
            commit=commit,
        )


class PatchParser:
    """Parse a patch document and yield FileChange records.

    Usage::

        parser = PatchParser(text_stream)
        for change in parser.parse():
            for line in change.added_lines:
                ...

    Raises PatchParseError on a malformed hunk header or a hunk that is
    cut short.
    """

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = lines

    @classmethod
    def from_text(cls, text: str) -> "PatchParser":
        return cls(io.StringIO(text, newline="\n"))

    def parse(self) -> Iterator[FileChange]:
        """Yield FileChange items in document order."""
        header: Optional[_CommitHeader] = None
        commit: Optional[CommitInfo] = None
        current: Optional[_FileState] = None
        skipping_combined = False
        hunk: Optional[Hunk] = None
        old_line = new_line = 0
        old_left = new_left = 0
        line_no = 0

        for raw_line in self._lines:
            line_no += 1
            line = _normalise(raw_line)

            # --- Inside a hunk: consume by count ---
            if hunk is not None and (old_left > 0 or new_left > 0):
                assert current is not None
                if line.startswith("\\"):
                    # "\ No newline at end of file"
                    continue
                tag = line[:1]
                body = line[1:]
                if tag == "+" and new_left > 0:
                    if not _SUBPROJECT_RE.match(line):
                        hunk.lines.append(DiffLine(
                            file=current.path,
                            line_no=new_line,
                            content=_strip_bom(body),
                            line_type=LineType.ADDED,
                        ))
                    new_line += 1
                    new_left -= 1
                elif tag == "-" and old_left > 0:
                    if not _SUBPROJECT_RE.match(line):
                        hunk.lines.append(DiffLine(
                            file=current.path,
                            line_no=old_line,
                            content=body,
                            line_type=LineType.REMOVED,
                        ))
                    old_line += 1
                    old_left -= 1
                elif tag in (" ", "") and old_left > 0 and new_left > 0:
                    hunk.lines.append(DiffLine(
                        file=current.path,
                        line_no=new_line,
                        content=body,
                        line_type=LineType.CONTEXT,
                    ))
                    old_line += 1
                    new_line += 1
                    old_left -= 1
                    new_left -= 1
                else:
                    raise PatchParseError(
                        f"unexpected line in hunk for {current.path}: {line[:40]!r}",
                        line_no,
                    )
                continue
            hunk = None

            # --- commit <sha> → new commit context ---
            cm = _COMMIT_RE.match(line)
            if cm:
                if current is not None:
                    yield current.build(commit)
                    current = None
                skipping_combined = False
                header = _CommitHeader(cm.group(1))
                commit = None
                continue

            # --- diff --git header → new file context ---
            m = _DIFF_HEADER_RE.match(line)
            if m:
                if current is not None:
                    yield current.build(commit)
                if header is not None:
                    commit = header.build()
                    header = None
                current = _FileState(
                    _header_path(m.group(1), "a/"), _header_path(m.group(2), "b/")
                )
                skipping_combined = False
                continue

            # --- Merge commits shown with --cc: no per-file record ---
            if _COMBINED_HEADER_RE.match(line):
                if current is not None:
                    yield current.build(commit)
                    current = None
                if header is not None:
                    commit = header.build()
                    header = None
                skipping_combined = True
                continue

            if skipping_combined:
                continue

            # --- Commit header block (Author, Date, message) ---
            if header is not None:
                header.feed(line)
                continue

            if current is None:
                # Text outside any file (blank separators, stray output)
                continue

            # --- Hunk header ---
            hm = _HUNK_HEADER_RE.match(line)
            if hm:
                old_line = int(hm.group(1))
                old_left = int(hm.group(2)) if hm.group(2) is not None else 1
                new_line = int(hm.group(3))
                new_left = int(hm.group(4)) if hm.group(4) is not None else 1
                hunk = Hunk(
                    old_start=old_line,
                    old_count=old_left,
                    new_start=new_line,
                    new_count=new_left,
                )
                current.hunks.append(hunk)
                continue
            if line.startswith("@@"):
                raise PatchParseError(f"malformed hunk header: {line[:40]!r}", line_no)

            # --- Sub-headers (index, mode changes, renames, new/deleted file) ---
            if _INDEX_RE.match(line) or _SIMILARITY_RE.match(line):
                continue
            if _OLD_MODE_RE.match(line) or _NEW_MODE_RE.match(line):
                current.is_mode_change = True
                continue
            if _DELETED_FILE_RE.match(line):
                current.is_deleted = True
                continue
            if _NEW_FILE_RE.match(line):
                current.is_new = True
                continue
            if (rm := _RENAME_FROM_RE.match(line)):
                current.old_path = _unquote(rm.group(1))
                current.is_rename = True
                continue
            if (rt := _RENAME_TO_RE.match(line)):
                current.path = _unquote(rt.group(1))
                continue
            if (cf := _COPY_FROM_RE.match(line)):
                current.old_path = _unquote(cf.group(1))
                current.is_copy = True
                continue
            if (ct := _COPY_TO_RE.match(line)):
                current.path = _unquote(ct.group(1))
                continue
            if _BINARY_RE.match(line) or _GIT_BINARY_RE.match(line):
                current.is_binary = True
                continue

            # --- File headers (--- a/ and +++ b/) ---
            if _FILE_HEADER_OLD.match(line):
                continue
            if (fh := _FILE_HEADER_NEW.match(line)):
                if fh.group(1) is not None:
                    # Names containing a space carry a trailing tab.
                    current.path = _header_path(fh.group(1).rstrip("\t"), "b/")
                continue

            # Unknown line outside a hunk (binary patch payload, blank
            # separator before the next commit) are skipped.

        if hunk is not None and (old_left > 0 or new_left > 0):
            raise PatchParseError(
                f"patch ended inside a hunk for {current.path if current else '?'}",
                line_no,
            )
        if current is not None:
            yield current.build(commit)
