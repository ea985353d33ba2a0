"""Update and rollback commands."""

import typer

from ..core.orchestrator import UpdateOptions, UpdateOrchestrator
from .common import render_result, updater_session


def update(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Reinstall even if already on the latest version",
    ),
    update_scripts: bool = typer.Option(
        False,
        "--update-scripts",
        "-s",
        help="Update maintenance scripts (without --force: scripts only)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompts",
    ),
    development: bool = typer.Option(
        False,
        "--development",
        "-d",
        help="Include development builds",
    ),
    rollback: bool = typer.Option(
        False,
        "--rollback",
        "-r",
        help="Roll back to the version before the last update",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would change without changing anything",
    ),
) -> None:
    """Update QuickBot to the latest release."""
    options = UpdateOptions(
        force=force,
        update_scripts=update_scripts,
        assume_yes=yes,
        development=development,
        rollback=rollback,
        dry_run=dry_run,
    )
    with updater_session() as ctx:
        result = UpdateOrchestrator(ctx).run(options, command="update")
    render_result(result)


def rollback(
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompts",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show the rollback target without installing it",
    ),
) -> None:
    """Roll back to the version installed before the last update."""
    options = UpdateOptions(rollback=True, assume_yes=yes, dry_run=dry_run)
    with updater_session() as ctx:
        result = UpdateOrchestrator(ctx).run(options, command="rollback")
    render_result(result)
