# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/cli/commands/actions.py

"""
Action command handlers - state-changing volume and task commands.

Handles: volume new/delete, task new/modify/delete/process

Each handler works on a session that already has every reachable volume
loaded; the caller commits the session afterwards.
"""

from typing import Optional

from loguru import logger
from rich.console import Console

from mclone.cli.utils import session_command
from mclone.core.session import Session
from mclone.core.volume import Volume
from mclone.data.task import CrypterMode, Task, TaskMode
from mclone.system.display import (
    display_processing_summary,
    display_task_result,
    display_volume_result,
)


def _resolve_mode(pattern: Optional[str]) -> Optional[TaskMode]:
    return TaskMode.resolve(pattern) if pattern else None


@session_command()
def volume_new(console: Console, session: Session, directory: str) -> Volume:
    volume = session.format_volume(directory)
    display_volume_result(console, "Created", volume)
    return volume


@session_command()
def volume_delete(console: Console, session: Session, pattern: str) -> Volume:
    volume = session.delete_volume(pattern)
    display_volume_result(console, "Deleted", volume)
    return volume


@session_command()
def task_new(
    console: Console,
    session: Session,
    source: str,
    destination: str,
    mode: Optional[str] = None,
    include: Optional[str] = None,
    exclude: Optional[str] = None,
    encrypt: bool = False,
    decrypt: bool = False,
    password: Optional[str] = None,
    token: Optional[str] = None,
) -> Task:
    crypter_mode = None
    if encrypt:
        crypter_mode = CrypterMode.ENCRYPT
    elif decrypt:
        crypter_mode = CrypterMode.DECRYPT
    task = session.create_task(
        _resolve_mode(mode) or TaskMode.UPDATE,
        source,
        destination,
        include=include,
        exclude=exclude,
        crypter_mode=crypter_mode,
        crypter_password=password,
        crypter_token=token,
    )
    display_task_result(console, "Created", task)
    return task


@session_command()
def task_modify(
    console: Console,
    session: Session,
    pattern: str,
    mode: Optional[str] = None,
    include: Optional[str] = None,
    exclude: Optional[str] = None,
) -> Task:
    task = session.modify_task(pattern, mode=_resolve_mode(mode), include=include, exclude=exclude)
    display_task_result(console, "Modified", task)
    return task


@session_command()
def task_delete(console: Console, session: Session, pattern: str) -> Task:
    task = session.delete_task(pattern)
    display_task_result(console, "Deleted", task)
    return task


@session_command(commit=False)
def task_process(console: Console, session: Session, patterns: Optional[list[str]] = None) -> list[Task]:
    patterns = patterns or []
    logger.debug(f"Processing {'tasks ' + ', '.join(patterns) if patterns else 'all intact tasks'}")
    tasks = session.process_tasks(*patterns)
    display_processing_summary(console, tasks, simulate=session.simulate)
    return tasks
