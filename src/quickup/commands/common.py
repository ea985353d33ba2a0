"""Helpers shared by the update commands."""

import contextlib
from collections.abc import Iterator
from pathlib import Path
from typing import NoReturn

import typer

from ..config import QuickupConfig, load_config
from ..core.context import UpdaterContext, build_context
from ..errors import QuickupError
from ..logging import attach_file_log, detach_file_log
from ..models import ScriptStatus, UpdateOutcome, UpdateResult
from ..output import get_output_context

# Set by cli.py main callback from --config
_config_path: Path | None = None


def set_config_path(path: Path | None) -> None:
    global _config_path
    _config_path = path


def get_config_path() -> Path | None:
    return _config_path


def get_config() -> QuickupConfig:
    """Load the config selected on the command line."""
    return load_config(_config_path)


def confirm_prompt(prompt: str, default: bool) -> bool:
    """Ask a yes/no question on stderr, keeping stdout clean for --json."""
    return typer.confirm(prompt, default=default, err=True)


@contextlib.contextmanager
def updater_session() -> Iterator[UpdaterContext]:
    """Build the run context and mirror logs into update.log for its lifetime.

    Errors raised inside the block are printed and turned into typer.Exit
    with the error's exit code.
    """
    out = get_output_context()
    try:
        ctx = build_context(
            get_config(),
            confirm=confirm_prompt,
            console=None if out.json_mode else out.console,
        )
    except QuickupError as e:
        fail(e)

    handler = attach_file_log(ctx.config.log_file)
    try:
        yield ctx
    except QuickupError as e:
        fail(e)
    finally:
        detach_file_log(handler)
        ctx.close()


def fail(error: QuickupError) -> NoReturn:
    """Report an error and exit with its status."""
    get_output_context().error(
        str(error), {"type": type(error).__name__, "exit_code": error.exit_code}
    )
    raise typer.Exit(error.exit_code) from error


_STATUS_STYLE = {
    ScriptStatus.UP_TO_DATE: "[green]OK[/green]",
    ScriptStatus.CHANGED: "[yellow]UPDATE[/yellow]",
    ScriptStatus.NEW: "[cyan]NEW[/cyan]",
    ScriptStatus.UNKNOWN: "[red]UNKNOWN[/red]",
}


def render_result(result: UpdateResult) -> None:
    """Print a run result and exit non-zero on partial script failures."""
    out = get_output_context()
    if out.json_mode:
        out.print_json(result.model_dump(mode="json"))
    else:
        _print_summary(result)

    if result.exit_code:
        raise typer.Exit(result.exit_code)


def _print_summary(result: UpdateResult) -> None:
    out = get_output_context()

    if result.scripts:
        out.console.print("\n[bold]Scripts:[/bold]")
        for script in result.scripts.values():
            out.console.print(f"  {_STATUS_STYLE[script.status]} {script.name}")

    if result.sync is not None:
        for name in sorted(result.sync.updated):
            out.console.print(f"  [green]✓[/green] {name}")
        for name in sorted(result.sync.failed):
            out.console.print(f"  [red]✗[/red] {name}")
        if result.sync.mixed_version:
            out.warning(
                "Scripts are at mixed versions; rerun 'quickup scripts apply' "
                "or 'quickup scripts restore'"
            )

    for warning in result.warnings:
        out.warning(warning)

    if result.outcome is UpdateOutcome.UPDATED:
        out.success(f"Updated QuickBot {result.current_version} → {result.target_version}")
    elif result.outcome is UpdateOutcome.ROLLED_BACK:
        out.success(f"Rolled back QuickBot {result.current_version} → {result.target_version}")
    elif result.outcome is UpdateOutcome.UP_TO_DATE:
        out.success(f"QuickBot is up to date ({result.current_version})")
    elif result.outcome is UpdateOutcome.PREVIEW:
        if result.target_version:
            out.console.print(
                f"[cyan][DRY RUN][/cyan] Would install {result.target_version} "
                f"(current {result.current_version})"
            )
            if result.artifact:
                out.console.print(f"  Source: {result.artifact.locator}")
        else:
            out.console.print("[cyan][DRY RUN][/cyan] No changes made")
    elif result.outcome is UpdateOutcome.CANCELLED:
        out.console.print("[yellow]Cancelled[/yellow]")
    elif result.outcome is UpdateOutcome.SCRIPTS_SYNCED and result.sync is None:
        out.success("Scripts are up to date")
