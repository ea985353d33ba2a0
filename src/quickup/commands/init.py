"""Init command implementation."""

import subprocess

import typer

from ..config import default_config_path, load_config, write_config_template
from ..constants import INIT_TOOL_CHECK_TIMEOUT
from ..output import get_output_context
from .common import get_config_path


def init() -> None:
    """Write the quickup config and check the toolchain."""
    ctx = get_output_context()

    config_path = get_config_path() or default_config_path()
    if not config_path.exists():
        write_config_template(config_path)
        ctx.console.print(f"[green]Created config template:[/green] {config_path}")
    else:
        ctx.console.print(f"[yellow]Config already exists:[/yellow] {config_path}")

    config = load_config(config_path)

    # Validate toolchain
    tools = {
        "pipx": [config.app.pipx, "--version"],
        "git": ["git", "--version"],
        config.app.command: [config.app.command, "help"],
    }

    all_ok = True
    for name, cmd in tools.items():
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=INIT_TOOL_CHECK_TIMEOUT
            )
            if result.returncode == 0:
                ctx.console.print(f"[green]✓[/green] {name}")
            else:
                ctx.console.print(f"[red]✗[/red] {name}: {result.stderr.strip()[:50]}")
                all_ok = False
        except FileNotFoundError:
            ctx.console.print(f"[red]✗[/red] {name}: not found in PATH")
            all_ok = False
        except subprocess.TimeoutExpired:
            ctx.console.print(f"[yellow]?[/yellow] {name}: timed out")

    if not config.env_file.exists():
        ctx.console.print(f"[yellow]![/yellow] No installation record at {config.env_file}")
        all_ok = False

    if not all_ok:
        ctx.console.print("\n[yellow]Warning: Some tools are missing or not configured[/yellow]")
        raise typer.Exit(2)

    ctx.console.print("\n[bold green]quickup initialized successfully![/bold green]")
