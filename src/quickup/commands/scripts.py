"""Maintenance script commands."""

import typer

from ..core.lock_manager import hold_lock
from ..core.orchestrator import UpdateOptions, UpdateOrchestrator
from ..output import get_output_context
from .common import confirm_prompt, render_result, updater_session

scripts_app = typer.Typer(help="Maintenance script commands", no_args_is_help=True)


@scripts_app.command("check")
def scripts_check() -> None:
    """Compare local scripts with the latest installer release."""
    options = UpdateOptions(update_scripts=True, dry_run=True, assume_yes=True)
    with updater_session() as ctx:
        result = UpdateOrchestrator(ctx).sync_scripts(options)
    render_result(result)


@scripts_app.command("apply")
def scripts_apply(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Re-download all scripts even if nothing changed",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompts",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be updated without changing anything",
    ),
) -> None:
    """Update scripts to the latest installer release."""
    options = UpdateOptions(force=force, update_scripts=True, assume_yes=yes, dry_run=dry_run)
    with updater_session() as ctx, hold_lock(ctx.config.paths.data_root, "scripts apply"):
        result = UpdateOrchestrator(ctx).sync_scripts(options)
    render_result(result)


@scripts_app.command("restore")
def scripts_restore(
    snapshot: str | None = typer.Option(
        None,
        "--snapshot",
        help="Backup to restore (defaults to the newest)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompts",
    ),
) -> None:
    """Restore scripts from a backup taken before a sync."""
    out = get_output_context()
    with updater_session() as ctx:
        label = snapshot or "the newest backup"
        if not yes and not confirm_prompt(f"Restore scripts from {label}?", False):
            out.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

        with hold_lock(ctx.config.paths.data_root, "scripts restore"):
            try:
                restored = ctx.scripts.restore(snapshot)
            except FileNotFoundError as e:
                out.error(str(e))
                raise typer.Exit(1) from None

    out.result(
        {"restored": restored, "snapshot": snapshot},
        f"[green]Restored {len(restored)} script(s)[/green]",
    )


@scripts_app.command("backups")
def scripts_backups() -> None:
    """List script backups, newest first."""
    out = get_output_context()
    with updater_session() as ctx:
        snapshots = ctx.scripts.backups()

    if out.json_mode:
        out.print_json({"backups": [s.model_dump(mode="json") for s in snapshots]})
        return

    if not snapshots:
        out.console.print("[yellow]No backups found[/yellow]")
        return

    for snap in snapshots:
        tag = f" → {snap.target_tag}" if snap.target_tag else ""
        out.console.print(
            f"  [bold]{snap.name}[/bold]  {snap.created_at.strftime('%Y-%m-%d %H:%M:%S')}{tag}"
        )
        out.console.print(f"    {', '.join(snap.scripts) or '(empty)'}")
