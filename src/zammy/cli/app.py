"""Main CLI application using Typer."""

import asyncio
import shlex
import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from zammy import __version__

app = typer.Typer(
    name="zammy",
    help="zammy - a terminal command shell you can extend with plugins",
    no_args_is_help=True,
)

console = Console()

ConfigOption = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to config file (default: ~/.zammy/zammy.yaml)",
)


def _build_host(config_path: Optional[str]):
    from zammy.config.loader import ConfigError, load_config
    from zammy.host import create_host
    from zammy.logging_setup import configure_logging

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ConfigError as e:
        console.print(f"[red]Failed to load config: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    configure_logging(config.logging, console)
    return create_host(config, console)


@app.command()
def version():
    """Show zammy version."""
    console.print(f"zammy version {__version__}")


@app.command()
def shell(config_path: str = ConfigOption):
    """Start the interactive shell."""
    from zammy.cli.shell import shell_command

    shell_command(_build_host(config_path))


@app.command()
def run(
    command: List[str] = typer.Argument(..., help="Command name followed by its arguments"),
    config_path: str = ConfigOption,
):
    """Run a single command, e.g. 'zammy run help'."""
    from zammy.cli.shell import run_once

    host = _build_host(config_path)
    ok = asyncio.run(run_once(host, shlex.join(command)))
    if not ok:
        raise typer.Exit(1)


# Plugin commands
plugin_app = typer.Typer(help="Manage zammy plugins")
app.add_typer(plugin_app, name="plugin")


@plugin_app.command("list")
def plugin_list(config_path: str = ConfigOption):
    """List all installed plugins."""
    from zammy.cli.plugin_cmd import list_plugins

    asyncio.run(list_plugins(_build_host(config_path)))


@plugin_app.command("info")
def plugin_info(
    name: str = typer.Argument(..., help="Plugin name"),
    config_path: str = ConfigOption,
):
    """Show detailed information about a plugin."""
    from zammy.cli.plugin_cmd import info_plugin

    asyncio.run(info_plugin(_build_host(config_path), name))


@plugin_app.command("install")
def plugin_install(
    source: str = typer.Argument(..., help="Local path, package name, github:user/repo or git URL"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Install even if commands conflict"),
    config_path: str = ConfigOption,
):
    """Install a plugin."""
    from zammy.cli.plugin_cmd import install_plugin

    if not asyncio.run(install_plugin(_build_host(config_path), source, yes=yes)):
        raise typer.Exit(1)


@plugin_app.command("remove")
def plugin_remove(
    name: str = typer.Argument(..., help="Plugin name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config_path: str = ConfigOption,
):
    """Remove an installed plugin."""
    from zammy.cli.plugin_cmd import remove_plugin

    if not asyncio.run(remove_plugin(_build_host(config_path), name, yes=yes)):
        raise typer.Exit(1)


@plugin_app.command("create")
def plugin_create(
    name: str = typer.Argument(None, help="Plugin name"),
    directory: Path = typer.Option(None, "--dir", "-d", help="Parent directory (default: cwd)"),
    config_path: str = ConfigOption,
):
    """Scaffold a new plugin."""
    from zammy.cli.plugin_cmd import create_plugin

    if not create_plugin(_build_host(config_path), name, directory):
        raise typer.Exit(1)


def main():
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
