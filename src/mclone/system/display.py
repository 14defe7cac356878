# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/system/display.py

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from mclone.data.task import CrypterMode, Task

if TYPE_CHECKING:
    from mclone.core.session import Session
    from mclone.core.volume import Volume


def format_volume(volume: "Volume") -> str:
    return f"* [{volume.id}] :: ({volume.root})"


def _endpoint(session: "Session", volume_id: str, root: str) -> str:
    # Unloaded volumes are shown in angle brackets
    if session.volumes.get(volume_id) is None:
        return f"<{volume_id}>({root})"
    return f"[{volume_id}]({root})"


def format_task(session: "Session", task: Task) -> str:
    """One-line summary of a task, e.g.

    * [1a2b3c4d] :: encrypt+update [0f0f0f0f](docs) -> [abababab](backup) :: include *.pdf
    """
    intact = session.is_intact(task)
    handle = f"[{task.id}]" if intact else f"<{task.id}>"
    mode = task.mode.value
    if task.crypter_mode is not None:
        mode = f"{task.crypter_mode.value}+{mode}"
    line = (f"* {handle} :: {mode} "
            f"{_endpoint(session, task.source_id, task.source_root)} -> "
            f"{_endpoint(session, task.destination_id, task.destination_root)}")
    if task.include:
        line += f" :: include {task.include}"
    if task.exclude:
        line += f" :: exclude {task.exclude}"
    return line


def info_lines(session: "Session", version: str) -> list[str]:
    """The `mclone info` report as plain lines."""
    lines = [f"# Mclone version {version}"]

    lines.append("## Volumes")
    lines += [format_volume(v) for v in session.volumes]

    intact = list(session.intact_tasks())
    if intact:
        lines.append("## Intact tasks")
        lines += [format_task(session, t) for t in intact]

    stale = session.stale_tasks()
    if stale:
        lines.append("## Stale tasks")
        lines += [format_task(session, t) for t in stale]
    return lines


def display_info(console: Console, session: "Session", version: str) -> None:
    # Markup off: square brackets are part of the report
    for line in info_lines(session, version):
        console.print(line, markup=False, highlight=False, soft_wrap=True)


def display_task_result(console: Console, action: str, task: Task) -> None:
    suffix = ""
    if task.crypter_mode is CrypterMode.ENCRYPT:
        suffix = " (token stored on source volume)"
    elif task.crypter_mode is CrypterMode.DECRYPT:
        suffix = " (token stored on destination volume)"
    console.print(f"[green]✓[/green] {action} task {task.id}{suffix}")


def display_volume_result(console: Console, action: str, volume: "Volume") -> None:
    console.print(f"[green]✓[/green] {action} volume {volume.id} at {escape(str(volume.root))}", soft_wrap=True)


def display_processing_summary(console: Console, tasks: list[Task], simulate: bool = False) -> None:
    if not tasks:
        console.print("[yellow]No intact tasks to process[/yellow]")
        return
    prefix = "Dry run: " if simulate else ""
    console.print(f"[green]✓[/green] {prefix}processed {len(tasks)} task(s)")
