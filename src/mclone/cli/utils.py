# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/cli/utils.py

"""
CLI utility functions shared by the mclone commands.

- Global option state carried from the main callback to the subcommands
- Mutual exclusivity checks for paired flags
- Session setup (config, logging, volume discovery)
- Error reporting with typer exits
"""

from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Optional

import typer
from rich.console import Console
from rich.markup import escape

from mclone.config.manager import UserConfig, load_merged_user_config
from mclone.core.session import Session
from mclone.system.exceptions import MCloneError
from mclone.system.logging_setup import setup_logging


err_console = Console(stderr=True)


@dataclass
class CliState:
    """Global flags given before the subcommand."""
    force: bool = False
    simulate: bool = False
    verbose: bool = False
    debug: bool = False
    config: Optional[UserConfig] = field(default=None, repr=False)


def validate_mutually_exclusive_flags(**flags: bool) -> None:
    """Raise a usage error if more than one of the given flags is set."""
    chosen = [name for name, value in flags.items() if value]
    if len(chosen) > 1:
        options = " and ".join(f"--{name.replace('_', '-')}" for name in chosen)
        raise typer.BadParameter(f"{options} are mutually exclusive")


def handle_operation_error(console: Console, error: Exception) -> None:
    """Report an error with consistent formatting and exit 1."""
    console.print(f"[red]✗[/red] {escape(str(error))}", soft_wrap=True)
    raise typer.Exit(1)


def load_config_with_console(console: Console) -> UserConfig:
    try:
        return load_merged_user_config()
    except MCloneError as e:
        console.print(f"[red]✗[/red] Configuration error: {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(1)


def open_session(state: CliState) -> Session:
    """Session over every volume reachable from this host."""
    session = Session(
        config=state.config,
        force=state.force,
        simulate=state.simulate,
        verbose=state.verbose,
    )
    return session.restore_volumes()


def session_command(commit: bool = True) -> Callable:
    """Run a command handler against a fresh session.

    The handler gets (console, session, **kwargs). State-changing handlers
    are followed by a session commit. Any MCloneError or OSError ends the
    command with exit code 1.
    """
    def decorator(handler: Callable) -> Callable:
        @wraps(handler)
        def wrapper(console: Console, state: CliState, **kwargs) -> Any:
            try:
                session = open_session(state)
                result = handler(console, session, **kwargs)
                if commit:
                    session.commit()
                return result
            except (MCloneError, OSError) as e:
                handle_operation_error(err_console, e)
        return wrapper
    return decorator


def setup_cli(verbose: bool, debug: bool) -> UserConfig:
    """Load the user config and route logging according to it."""
    setup_logging(verbose=verbose, debug=debug)
    config = load_config_with_console(err_console)
    setup_logging(verbose=verbose, debug=debug, config=config)
    return config
