"""Git stderr classification — ignorable warnings vs fatal errors.

Git emits rename-detection warnings on large histories and then carries on
writing a complete patch to stdout, so those lines must not abort a scan.
Anything else on stderr means stdout can no longer be trusted.

Classification is table-driven: add a :class:`DiagnosticRule` to
``DEFAULT_RULES`` (or list a substring under ``[diagnostics] ignore`` in
``.gitsift.toml``) to teach gitsift about a new benign message.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import IO, Iterable, List, Optional, Sequence

from gitsift.git.errors import DiagnosticFatal
from gitsift.git.models import DiagnosticKind, DiagnosticLine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiagnosticRule:
    """Marks a stderr line as ignorable when it contains *substring* or matches *pattern*."""

    name: str
    substring: Optional[str] = None
    pattern: Optional[str] = None
    _compiled: Optional[re.Pattern[str]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.pattern is not None:
            object.__setattr__(self, "_compiled", re.compile(self.pattern))

    def matches(self, line: str) -> bool:
        if self.substring is not None and self.substring in line:
            return True
        if self._compiled is not None and self._compiled.search(line):
            return True
        return False


DEFAULT_RULES: tuple[DiagnosticRule, ...] = (
    DiagnosticRule(
        name="exhaustive-rename-skipped",
        substring="exhaustive rename detection was skipped",
    ),
    DiagnosticRule(
        name="inexact-rename-skipped",
        substring="inexact rename detection was skipped",
    ),
    DiagnosticRule(
        name="rename-limit-hint",
        substring="you may want to set your diff.renameLimit",
    ),
)


def build_rules(extra_ignorable: Iterable[str] = ()) -> tuple[DiagnosticRule, ...]:
    """Return the default rules plus one substring rule per *extra_ignorable* entry."""
    if isinstance(extra_ignorable, str):
        raise TypeError("extra_ignorable must be a sequence of strings, not a string")
    extra = tuple(
        DiagnosticRule(name=f"user:{s}", substring=s) for s in extra_ignorable if s
    )
    return DEFAULT_RULES + extra


def classify(line: str, rules: Sequence[DiagnosticRule] = DEFAULT_RULES) -> DiagnosticLine:
    """Classify a single stderr line."""
    text = line.rstrip("\r\n")
    if any(rule.matches(text) for rule in rules):
        return DiagnosticLine(text=text, kind=DiagnosticKind.IGNORABLE)
    return DiagnosticLine(text=text, kind=DiagnosticKind.FATAL)


def _report(diag: DiagnosticLine) -> None:
    if diag.is_fatal:
        logger.error("%s", diag.text)
    else:
        logger.warning("%s", diag.text)


def classify_output(
    text: str, rules: Sequence[DiagnosticRule] = DEFAULT_RULES
) -> List[DiagnosticLine]:
    """Classify and report every line of captured stderr.

    A blank line matches no benign rule, so it counts as fatal.
    """
    result: List[DiagnosticLine] = []
    for line in text.splitlines():
        diag = classify(line, rules)
        _report(diag)
        result.append(diag)
    return result


def fatal_lines(diagnostics: Iterable[DiagnosticLine]) -> List[str]:
    return [d.text for d in diagnostics if d.is_fatal]


class DiagnosticMonitor:
    """Drains a process's stderr on a background thread.

    Usage::

        monitor = DiagnosticMonitor(proc.stderr)
        monitor.start()
        ...  # consume stdout
        monitor.join()
        monitor.raise_for_fatal()
    """

    def __init__(
        self,
        stream: IO[bytes],
        rules: Sequence[DiagnosticRule] = DEFAULT_RULES,
    ) -> None:
        self._stream = stream
        self._rules = tuple(rules)
        self._fatal: List[str] = []
        self._ignorable: List[str] = []
        self._thread = threading.Thread(
            target=self._run, name="gitsift-stderr", daemon=True
        )

    def start(self) -> "DiagnosticMonitor":
        self._thread.start()
        return self

    def _run(self) -> None:
        try:
            for raw in iter(self._stream.readline, b""):
                line = raw.decode("utf-8", errors="replace")
                diag = classify(line, self._rules)
                _report(diag)
                if diag.is_fatal:
                    self._fatal.append(diag.text)
                else:
                    self._ignorable.append(diag.text)
        except (OSError, ValueError):
            # Pipe closed underneath us after the process was killed.
            logger.debug("stderr stream closed while reading")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.ident is not None:
            self._thread.join(timeout)

    @property
    def done(self) -> bool:
        return self._thread.ident is not None and not self._thread.is_alive()

    @property
    def fatal_lines(self) -> List[str]:
        return list(self._fatal)

    @property
    def ignorable_lines(self) -> List[str]:
        return list(self._ignorable)

    @property
    def failed(self) -> bool:
        return bool(self._fatal)

    def raise_for_fatal(self) -> None:
        if self._fatal:
            raise DiagnosticFatal(self._fatal)
