# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/core/processing.py

"""
Hand-off of intact tasks to rclone.

The core only decides the rclone operation, its flags and the two endpoint
paths. Transfers run one after another as blocking subprocesses attached to
the terminal. A failing transfer is recorded and the batch goes on; a single
ProcessingError is raised at the end if anything failed.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from mclone.core.volume import MANIFEST_FILE
from mclone.data.task import CrypterMode, Task, TaskMode
from mclone.system.exceptions import CredentialError, ProcessingError
from mclone.system.execution import CommandExecutor as ce

if TYPE_CHECKING:
    from mclone.core.session import Session


# mode -> (rclone subcommand, extra flags)
RCLONE_OPERATIONS: dict[TaskMode, tuple[str, list[str]]] = {
    TaskMode.UPDATE: ("copy", ["--update"]),
    TaskMode.SYNCHRONIZE: ("sync", []),
    TaskMode.COPY: ("copy", []),
    TaskMode.MOVE: ("move", []),
}

CRYPT_REMOTE = ":crypt:"
SECRET_FLAGS = frozenset({"--crypt-password"})


def endpoint(root: Path, relative: str) -> str:
    """Absolute endpoint path for a volume root and a task-relative root."""
    return str(root / relative) if relative else str(root)


def build_command(
    rclone: str,
    task: Task,
    source: str,
    destination: str,
    simulate: bool = False,
    verbose: bool = False,
) -> list[str]:
    """rclone argument vector for one task between two resolved endpoints."""
    operation, flags = RCLONE_OPERATIONS[task.mode]
    opts = list(flags)
    if simulate:
        opts.append("--dry-run")
    if verbose:
        opts.append("--verbose")
    opts += ["--filter", f"- /{MANIFEST_FILE}"]
    if task.exclude:
        opts += ["--filter", f"- {task.exclude}"]
    if task.include:
        opts += ["--filter", f"+ {task.include}"]

    if task.crypter_mode is CrypterMode.ENCRYPT:
        opts += ["--crypt-remote", destination, "--crypt-password", task.crypter_token]
        destination = CRYPT_REMOTE
    elif task.crypter_mode is CrypterMode.DECRYPT:
        opts += ["--crypt-remote", source, "--crypt-password", task.crypter_token]
        source = CRYPT_REMOTE

    return [rclone, operation, *opts, source, destination]


def redact(cmd: list[str]) -> str:
    """Printable command line with secret flag values masked."""
    shown = []
    hide = False
    for arg in cmd:
        shown.append("***" if hide else arg)
        hide = arg in SECRET_FLAGS
    return " ".join(shown)


def obscure_password(password: str, rclone: str) -> str:
    """Turn a plaintext password into an rclone crypt token via `rclone obscure`."""
    try:
        result = ce.run_local([rclone, "obscure", "-"], input=password)
    except FileNotFoundError as e:
        raise CredentialError(f'failed to execute "{rclone}": {e}') from e
    except ValueError as e:
        raise CredentialError(f"rclone obscure failed: {e}") from e
    token = result.stdout.strip()
    if not token:
        raise CredentialError("rclone obscure returned an empty token")
    return token


def process_tasks(session: "Session", *patterns: str) -> list[Task]:
    """Run intact tasks through rclone.

    Args:
        session: Session with the volumes loaded
        *patterns: Task identity patterns; all intact tasks when empty

    Returns:
        The tasks that ran successfully

    Raises:
        NotFoundError, AmbiguousPatternError: If a pattern does not name
            exactly one intact task (nothing is run in that case)
        ProcessingError: If one or more transfers failed
    """
    intact = session.intact_tasks()
    if patterns:
        tasks = [intact.get(intact.resolve(pattern)) for pattern in patterns]
    else:
        tasks = list(intact)

    rclone = session.rclone
    done: list[Task] = []
    failures: list[tuple[str, str]] = []
    for task in tasks:
        source = endpoint(session.volumes.get(task.source_id).root, task.source_root)
        destination = endpoint(session.volumes.get(task.destination_id).root, task.destination_root)
        if task.crypter_mode is not None and task.known_crypter_token() is None:
            # only a token read from a manifest or fixed at task creation is used
            message = "crypt token is not stored on any loaded volume"
            logger.error(f"Task {task.id}: {message}")
            failures.append((task.id, message))
            continue
        try:
            cmd = build_command(rclone, task, source, destination,
                                simulate=session.simulate, verbose=session.verbose)
        except CredentialError as e:
            logger.error(f"Task {task.id}: {e}")
            failures.append((task.id, str(e)))
            continue

        logger.info(f"Task {task.id}: {redact(cmd)}")
        try:
            result = ce.run_attached(cmd)
        except OSError as e:
            message = f'failed to execute "{rclone}": {e}'
        else:
            if result.success:
                done.append(task)
                continue
            message = f"rclone exited with code {result.returncode}"
        logger.error(f"Task {task.id}: {message}")
        failures.append((task.id, message))

    if failures:
        ids = ", ".join(task_id for task_id, _ in failures)
        raise ProcessingError(f"{len(failures)} of {len(tasks)} task(s) failed: {ids}", failures=failures)
    return done
