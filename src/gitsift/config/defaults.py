"""Starter .gitsift.toml template."""

DEFAULT_TOML = """\
# gitsift configuration
version = "1.0"

[git]
executable = "git"
timeout = 120             # seconds, for `git log --right-only` and `git show`

[request]
# source_branch = "feature"   # both required to scan only the request's commits
# target_branch = "main"

[commits]
# file = "commits.txt"        # `git log --format=oneline` output, one commit per line

[log]
# opts = "--since=2024-01-01 main"   # replaces `--full-history --all`

[diff]
staged = false

[diagnostics]
# ignore = ["warning: CRLF will be replaced"]   # extra benign stderr messages

[output]
format = "terminal"       # terminal | json
show_summary = true
"""
