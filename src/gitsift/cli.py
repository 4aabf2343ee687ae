"""gitsift CLI — Typer application with detect, git-request, commits, protect, and init commands."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from gitsift import __version__

app = typer.Typer(
    name="gitsift",
    help="Stream git history and diffs as per-file change records.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

logger = logging.getLogger("gitsift")


def _setup_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    handler = RichHandler(console=console, show_path=debug, markup=False)
    root = logging.getLogger("gitsift")
    root.handlers[:] = [handler]
    root.setLevel(level)


def _resolve_repo_root(source: Optional[str]) -> Path:
    """Find the git repo root (or use --source as given), exit 2 on failure."""
    from gitsift.git.errors import GitSourceError
    from gitsift.git.runner import GitRunner

    if source:
        return Path(source)
    try:
        result = GitRunner().run(["rev-parse", "--show-toplevel"], cwd=Path.cwd())
    except GitSourceError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    if result.returncode != 0:
        console.print(f"[bold red]Error:[/bold red] {result.stderr.strip() or 'not a git repository'}")
        raise typer.Exit(code=2)
    return Path(result.stdout.strip())


def _load(repo_root: Path, config: Optional[str], format: Optional[str]):
    from gitsift.config.loader import ConfigError, load_config
    from gitsift.config.schema import OUTPUT_FORMATS

    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {format}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    return cfg


def _consume(open_stream, cfg, output: Optional[str]) -> None:
    """Drain the record stream, report it, and map failures to exit codes."""
    from gitsift.git.errors import DiagnosticFatal, GitSourceError
    from gitsift.output import json_report, terminal
    from gitsift.output.result import AcquisitionResult

    start = time.perf_counter()
    try:
        with open_stream() as stream:
            result = AcquisitionResult(mode=stream.mode, commits=stream.commits)
            for change in stream:
                result.changes.append(change)
            if stream.monitor is not None:
                result.warnings = stream.monitor.ignorable_lines
    except DiagnosticFatal as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        for line in exc.lines[1:]:
            console.print(f"  [red]{line}[/red]")
        raise typer.Exit(code=1) from exc
    except GitSourceError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc

    result.duration_ms = round((time.perf_counter() - start) * 1000, 2)

    report_text: Optional[str] = None
    if cfg.output.format == "terminal":
        terminal.render(result, show_summary=cfg.output.show_summary, console=console)
    else:
        report_text = json_report.render(result)
        print(report_text)

    if output:
        Path(output).write_text(report_text or json_report.render(result), encoding="utf-8")
        logger.info("Report written to %s", output)


# ── detect ────────────────────────────────────────────────────────────────────


@app.command()
def detect(
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Path to the repository (default: current repo root)"),
    log_opts: Optional[str] = typer.Option(None, "--log-opts", help="git log options, replacing --full-history --all"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitsift.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output, including git commands"),
) -> None:
    """Stream changes from git history (or the configured commit set)."""
    from gitsift.git.stream import git_log

    _setup_logging(verbose, debug)
    repo_root = _resolve_repo_root(source)
    cfg = _load(repo_root, config, format)
    _consume(lambda: git_log(repo_root, log_opts, config=cfg), cfg, output)


@app.command("git-request")
def git_request(
    source_branch: str = typer.Option(..., "--source-branch", help="Source branch"),
    target_branch: str = typer.Option(..., "--target-branch", help="Target branch"),
    commits_file: Optional[str] = typer.Option(None, "--commits-file", help="Commits (--format=oneline) in file"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Path to the repository"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitsift.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output, including git commands"),
) -> None:
    """Stream changes from a merge request or pull request (source not in target)."""
    from gitsift.git.stream import git_log

    _setup_logging(verbose, debug)
    repo_root = _resolve_repo_root(source)
    cfg = _load(repo_root, config, format)
    cfg.request.source_branch = source_branch
    cfg.request.target_branch = target_branch
    if commits_file:
        cfg.commits.file = commits_file
    _consume(lambda: git_log(repo_root, config=cfg), cfg, output)


@app.command()
def commits(
    commits_file: str = typer.Option(..., "--commits-file", help="Commits (--format=oneline) in file"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Path to the repository"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitsift.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output, including git commands"),
) -> None:
    """Stream changes for an explicit list of commits."""
    from gitsift.git.stream import git_log

    _setup_logging(verbose, debug)
    repo_root = _resolve_repo_root(source)
    cfg = _load(repo_root, config, format)
    cfg.commits.file = commits_file
    _consume(lambda: git_log(repo_root, config=cfg), cfg, output)


@app.command()
def protect(
    staged: Optional[bool] = typer.Option(None, "--staged/--unstaged", help="Diff the index instead of the working tree"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Path to the repository"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .gitsift.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON report to file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output, including git commands"),
) -> None:
    """Stream uncommitted changes (or staged changes with --staged)."""
    from gitsift.git.stream import git_diff

    _setup_logging(verbose, debug)
    repo_root = _resolve_repo_root(source)
    cfg = _load(repo_root, config, format)
    if staged is not None:
        cfg.diff.staged = staged
    _consume(lambda: git_diff(repo_root, cfg.diff.staged, config=cfg), cfg, output)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing .gitsift.toml"),
) -> None:
    """Generate a starter .gitsift.toml in the repo root."""
    from gitsift.config.defaults import DEFAULT_TOML
    from gitsift.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root(None)
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {config_path}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {config_path}")


# ── version ───────────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"gitsift {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """gitsift — stream git history and diffs as per-file change records."""
