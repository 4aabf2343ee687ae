"""gitsift — stream git history and diffs as per-file change records."""

__version__ = "0.1.0"
