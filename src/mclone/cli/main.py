# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/cli/main.py

"""
CLI dispatcher: parses options and routes commands to their handlers.

Global flags (force, dry run, verbosity) precede the command and are kept in
the typer context for the subcommands. Without a command, `info` runs.
"""

# Standard library imports
from importlib.metadata import PackageNotFoundError, version
from typing import Optional

# Third-party imports
import typer
from rich.console import Console

# Local mclone imports
from mclone.cli.commands import actions as action_commands
from mclone.cli.commands import info as info_commands
from mclone.cli.utils import CliState, setup_cli, validate_mutually_exclusive_flags

# Initialize Typer app
app = typer.Typer(
    help="""mclone - rclone-based replication between mobile volumes

[bold blue]Volumes:[/bold blue] volume new, volume delete
[bold green]Tasks:[/bold green] task new, task modify, task delete, task process
[bold magenta]Report:[/bold magenta] info
""",
    rich_markup_mode="rich",
)
volume_app = typer.Typer(help="Create and delete volumes.", rich_markup_mode="rich")
task_app = typer.Typer(help="Create, modify, delete and process tasks.", rich_markup_mode="rich")
app.add_typer(volume_app, name="volume")
app.add_typer(task_app, name="task")

console = Console()


def package_version() -> str:
    try:
        return version("mclone")
    except PackageNotFoundError:
        return "unknown"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"mclone version {package_version()}")
        raise typer.Exit()


def _state(ctx: typer.Context) -> CliState:
    return ctx.ensure_object(CliState)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing tasks and volumes"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Show what would be done without writing or transferring"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
) -> None:
    """mclone - keep directories on removable and fixed media in sync via rclone."""
    config = setup_cli(verbose, debug)
    ctx.obj = CliState(force=force, simulate=dry_run, verbose=verbose, debug=debug, config=config)
    if ctx.invoked_subcommand is None:
        info_commands.info(console, ctx.obj, version=package_version())


# =============================================================================
# REPORT
# =============================================================================

@app.command()
def info(ctx: typer.Context) -> None:
    """[bold magenta]Report[/bold magenta]: Show volumes, intact and stale tasks."""
    info_commands.info(console, _state(ctx), version=package_version())


# =============================================================================
# VOLUME COMMANDS
# =============================================================================

@volume_app.command("create", hidden=True)
@volume_app.command("new")
def volume_new(
    ctx: typer.Context,
    directory: str = typer.Argument(..., help="Existing directory to turn into a volume"),
) -> None:
    """Format a directory as a new, empty volume."""
    action_commands.volume_new(console, _state(ctx), directory=directory)


@volume_app.command("delete")
def volume_delete(
    ctx: typer.Context,
    volume: str = typer.Argument(..., help="Volume identity pattern"),
) -> None:
    """Delete a volume's manifest (refused while it owns tasks unless --force)."""
    action_commands.volume_delete(console, _state(ctx), pattern=volume)


# =============================================================================
# TASK COMMANDS
# =============================================================================

@task_app.command("create", hidden=True)
@task_app.command("new")
def task_new(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Source directory inside a loaded volume"),
    destination: str = typer.Argument(..., help="Destination directory inside a loaded volume"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="update (default), synchronize, copy or move; partial names accepted"),
    include: Optional[str] = typer.Option(None, "--include", "-i", help="rclone include filter pattern"),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-x", help="rclone exclude filter pattern"),
    encrypt: bool = typer.Option(False, "--encrypt", "-e", help="Encrypt data on the destination"),
    decrypt: bool = typer.Option(False, "--decrypt", "-d", help="Decrypt data from the source"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Plain text crypt password"),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="rclone-obscured crypt token"),
) -> None:
    """Create a task from SOURCE to DESTINATION."""
    validate_mutually_exclusive_flags(encrypt=encrypt, decrypt=decrypt)
    validate_mutually_exclusive_flags(password=bool(password), token=bool(token))
    action_commands.task_new(
        console, _state(ctx),
        source=source, destination=destination,
        mode=mode, include=include, exclude=exclude,
        encrypt=encrypt, decrypt=decrypt,
        password=password, token=token,
    )


@task_app.command("modify")
def task_modify(
    ctx: typer.Context,
    task: str = typer.Argument(..., help="Task identity pattern"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="New mode; partial names accepted"),
    include: Optional[str] = typer.Option(None, "--include", "-i", help="New include pattern; empty string clears it"),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-x", help="New exclude pattern; empty string clears it"),
) -> None:
    """Change the mode or filters of an existing task."""
    action_commands.task_modify(console, _state(ctx), pattern=task, mode=mode, include=include, exclude=exclude)


@task_app.command("delete")
def task_delete(
    ctx: typer.Context,
    task: str = typer.Argument(..., help="Task identity pattern"),
) -> None:
    """Delete a task from every volume that lists it."""
    action_commands.task_delete(console, _state(ctx), pattern=task)


@task_app.command("process")
def task_process(
    ctx: typer.Context,
    tasks: Optional[list[str]] = typer.Argument(None, help="Task identity patterns; all intact tasks if none"),
) -> None:
    """Run intact tasks through rclone."""
    action_commands.task_process(console, _state(ctx), patterns=tasks)


# =============================================================================
# ENTRY POINT
# =============================================================================

def cli_main() -> None:  # pragma: no cover - entry point
    """Entry point for the mclone CLI application."""
    app()


if __name__ == "__main__":  # pragma: no cover
    cli_main()
