# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/cli/commands/info.py

"""Info command handler - read-only report of volumes, intact and stale tasks."""

from rich.console import Console

from mclone.cli.utils import session_command
from mclone.core.session import Session
from mclone.system.display import display_info


@session_command(commit=False)
def info(console: Console, session: Session, version: str) -> Session:
    display_info(console, session, version)
    return session
