"""quickup CLI: keeps a QuickBot installation and its scripts up to date."""

from pathlib import Path

import typer

from quickup import __version__

from .commands import init, rollback, scripts_app, status, update
from .commands.common import set_config_path
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"quickup {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="quickup",
    help="Update, roll back and maintain a QuickBot installation",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (defaults to ~/.quickbot/quickup.toml)",
    ),
) -> None:
    """quickup - QuickBot update and rollback manager."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output))
    set_config_path(config)


app.command()(update)
app.command()(rollback)
app.command()(status)
app.command()(init)
app.add_typer(scripts_app, name="scripts")
