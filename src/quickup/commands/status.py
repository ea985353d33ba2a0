"""Status command for installation overview."""

from ..core.lock_manager import get_current_lock
from ..output import get_output_context
from .common import updater_session


def status() -> None:
    """Show the installed version, rollback target and run lock."""
    out = get_output_context()

    with updater_session() as ctx:
        record = ctx.installation
        rollback_to = ctx.journal.peek()
        lock = get_current_lock(ctx.config.paths.data_root)

    data = {
        "version": record.current_version,
        "install_method": record.install_method,
        "installed_at": record.installed_at,
        "repo": record.repo,
        "scripts_dir": str(ctx.config.scripts_dir),
        "data_root": str(ctx.config.paths.data_root),
        "rollback_version": rollback_to,
        "lock": lock.model_dump(mode="json") if lock else None,
    }
    if out.json_mode:
        out.print_json(data)
        return

    out.console.print(f"\n[bold]QuickBot:[/bold] {record.current_version}")
    out.console.print(f"[bold]Repository:[/bold] {record.repo}")
    if record.install_method:
        out.console.print(f"[bold]Installed via:[/bold] {record.install_method}")
    if record.installed_at:
        out.console.print(f"[bold]Installed at:[/bold] {record.installed_at}")
    out.console.print(f"[bold]Scripts:[/bold] {ctx.config.scripts_dir}")
    out.console.print(f"[bold]Data:[/bold] {ctx.config.paths.data_root}")

    if rollback_to:
        out.console.print(f"[bold]Rollback available:[/bold] {rollback_to}")
        out.console.print("  Run: quickup rollback")
    else:
        out.console.print("[dim]No rollback available[/dim]")

    if lock:
        out.console.print(
            f"[yellow]Run in progress:[/yellow] PID {lock.pid} ({lock.command}), "
            f"started {lock.started_at.strftime('%Y-%m-%d %H:%M:%S')}"
        )
