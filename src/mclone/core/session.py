# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/core/session.py

"""
Session: one invocation's view of all reachable volumes.

The session owns the authoritative task collection (the union of every task
seen in any loaded manifest), the set of loaded volumes and the credential
registry. All task and volume changes go through it; commit() then lets
each volume persist its own relevant slice.

Volumes are committed independently. There is no locking between concurrent
mclone processes and no atomicity across volumes.
"""

from __future__ import annotations

import os
import sys
from functools import partial
from pathlib import Path, PurePath
from typing import Iterable, Optional

from loguru import logger

from mclone.config.manager import UserConfig
from mclone.core import processing
from mclone.core.volume import MANIFEST_FILE, Volume
from mclone.data.identity_set import TaskSet, VolumeSet
from mclone.data.task import CredentialRegistry, CrypterMode, Task, TaskMode, fresh_mtime
from mclone.system.exceptions import CommitError, CredentialError, GuardError, LocateError, MCloneError
from mclone.system.mounts import candidate_roots


def _case_insensitive_paths() -> bool:
    return sys.platform == "win32"


class Session:
    """Loaded volumes, the shared task collection and the run-wide flags."""

    def __init__(
        self,
        config: Optional[UserConfig] = None,
        force: bool = False,
        simulate: bool = False,
        verbose: bool = False,
        obscurer=None,
    ):
        self.config = config or UserConfig()
        self.force = force
        self.simulate = simulate
        self.verbose = verbose
        self.volumes = VolumeSet()
        self.tasks = TaskSet()
        self.credentials = CredentialRegistry(
            obscurer or partial(processing.obscure_password, rclone=self.rclone)
        )

    @property
    def rclone(self) -> str:
        return self.config.rclone_executable()

    # ---- Volumes ----

    def restore_volume(self, directory: Path) -> Volume:
        volume = Volume.restore(self, Path(directory) / MANIFEST_FILE)
        loaded = self.volumes.get(volume.id)
        if loaded is not None:
            logger.warning(f"Volume {volume.id} found at both {loaded.root} and {volume.root}; using the latter")
        self.volumes.insert(volume)
        return volume

    def restore_volumes(self, paths: Optional[Iterable[Path]] = None) -> "Session":
        """Restore a volume from every candidate directory that has a manifest."""
        if paths is None:
            paths = candidate_roots(self.config)
        visited = set()
        for path in paths:
            key = os.path.normcase(os.path.realpath(path))
            if key in visited:
                continue
            visited.add(key)
            try:
                volume = self.restore_volume(Path(path))
            except FileNotFoundError:
                logger.debug(f"No mclone volume in {path}")
                continue
            logger.info(f"Loaded volume {volume.id} at {volume.root}")
        self.tasks.commit()
        return self

    def format_volume(self, directory: Path) -> Volume:
        """Turn an existing directory into a new, empty volume."""
        directory = Path(directory)
        if not directory.is_dir():
            raise LocateError(f'"{directory}" is not a directory', path=str(directory))
        file = directory / MANIFEST_FILE
        if file.exists() and not self.force:
            raise GuardError(f'refuse to overwrite existing mclone volume file "{file}"')
        volume = Volume(self, file)
        self.volumes.insert(volume)
        if not self.simulate:
            volume.commit(force=True)
        logger.info(f"Created volume {volume.id} at {volume.root}")
        return volume

    def delete_volume(self, pattern: str) -> Volume:
        """Unload the volume matching pattern and remove its manifest."""
        volume = self.volumes.get(self.volumes.resolve(pattern))
        volume.delete(self.force, simulate=self.simulate)
        self.volumes.remove(volume)
        return volume

    # ---- Locate ----

    def locate(self, path: "Path | str") -> tuple[str, str]:
        """Return (volume id, root relative to the volume) for a filesystem path.

        The most specific (longest) matching volume root wins.
        """
        target = Path(path).expanduser().resolve()
        fold = str.casefold if _case_insensitive_paths() else (lambda s: s)
        target_parts = [fold(p) for p in target.parts]

        best: Optional[Volume] = None
        for volume in self.volumes:
            root_parts = [fold(p) for p in volume.root.parts]
            if target_parts[:len(root_parts)] != root_parts:
                continue
            if best is None or len(volume.root.parts) > len(best.root.parts):
                best = volume
        if best is None:
            raise LocateError(f'path "{target}" does not belong to a loaded mclone volume', path=str(target))

        relative = target.parts[len(best.root.parts):]
        return best.id, PurePath(*relative).as_posix() if relative else ""

    # ---- Tasks ----

    def create_task(
        self,
        mode: "TaskMode | str",
        source: "Path | str",
        destination: "Path | str",
        include: Optional[str] = None,
        exclude: Optional[str] = None,
        crypter_mode: "CrypterMode | str | None" = None,
        crypter_password: Optional[str] = None,
        crypter_token: Optional[str] = None,
    ) -> Task:
        source_id, source_root = self.locate(source)
        destination_id, destination_root = self.locate(destination)
        fields = dict(
            mode=mode,
            include=include,
            exclude=exclude,
            crypter_mode=crypter_mode,
            crypter_password=crypter_password,
            crypter_token=crypter_token,
            registry=self.credentials,
        )
        task = Task(source_id, source_root, destination_id, destination_root, **fields)
        existing = self.tasks.lookup(task)
        if existing is not None:
            if not self.force:
                raise GuardError(f'refuse to overwrite existing task "{existing.id}"')
            if existing.mtime >= task.mtime:
                # replacement must be strictly newer than the stored task
                task = Task(source_id, source_root, destination_id, destination_root,
                            id=task.id, mtime=fresh_mtime(existing.mtime), **fields)
        # the token is fixed here; a password is never left to be derived at commit
        task.crypter_token
        self.tasks.insert(task)
        logger.info(f"Created task {task.id}")
        return task

    def modify_task(
        self,
        pattern: str,
        mode: "TaskMode | str | None" = None,
        include: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> Task:
        task = self.tasks.get(self.tasks.resolve(pattern))
        modified = task.modified(mode=mode, include=include, exclude=exclude)
        self.tasks.insert(modified)
        logger.info(f"Modified task {modified.id}")
        return modified

    def delete_task(self, pattern: str) -> Task:
        task = self.tasks.get(self.tasks.resolve(pattern))
        self.tasks.remove(task)
        logger.info(f"Deleted task {task.id}")
        return task

    def is_intact(self, task: Task) -> bool:
        return self.volumes.get(task.source_id) is not None and self.volumes.get(task.destination_id) is not None

    def intact_tasks(self) -> TaskSet:
        """Tasks whose source and destination volumes are both loaded."""
        return TaskSet(task for task in self.tasks if self.is_intact(task))

    def stale_tasks(self) -> list[Task]:
        return [task for task in self.tasks if not self.is_intact(task)]

    def process_tasks(self, *patterns: str) -> list[Task]:
        return processing.process_tasks(self, *patterns)

    # ---- Persistence ----

    def _resolve_credentials(self) -> None:
        """Derive every missing crypt token a loaded volume must hold.

        Runs before any manifest is written, so a failure leaves all volumes
        as they were.
        """
        failures = []
        for task in self.tasks:
            if task.crypter_mode is None or task.known_crypter_token() is not None:
                continue
            if not any(task.holds_credential(volume.id) for volume in self.volumes):
                continue
            try:
                task.crypter_token
            except CredentialError as e:
                logger.error(f"Failed to derive crypt token of task {task.id}: {e}")
                failures.append((task.id, str(e)))
        if failures:
            ids = ", ".join(task_id for task_id, _ in failures)
            raise CommitError(f"no volume written; crypt token unavailable for task(s) {ids}", failures=failures)

    def commit(self) -> "Session":
        """Persist every loaded volume that changed; each volume independently."""
        if self.simulate:
            logger.info("Dry run: no volume written")
            return self
        self._resolve_credentials()
        failures = []
        for volume in self.volumes:
            try:
                volume.commit(self.force)
            except (OSError, MCloneError) as e:
                logger.error(f"Failed to commit volume {volume.id} ({volume.file}): {e}")
                failures.append((volume.id, str(e)))
        if failures:
            ids = ", ".join(volume_id for volume_id, _ in failures)
            raise CommitError(f"failed to write volume(s) {ids}", failures=failures)
        self.tasks.commit()
        return self
