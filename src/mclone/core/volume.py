# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/core/volume.py

"""
Volumes: directories carrying a `.mclone` manifest.

A volume does not own a task collection of its own. Its tasks are whatever
the session's shared collection holds that references the volume as source
or destination, computed on demand. Restoring a volume merges everything its
manifest lists into the shared collection; committing writes the current
relevant view back.

Manifest writes go through a sibling temp file and os.replace(), so an
interrupted commit leaves either the old or the new manifest, never a torn
one.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import orjson
from loguru import logger

from mclone.data.task import Task, generate_id
from mclone.system.exceptions import GuardError, ManifestError

if TYPE_CHECKING:
    from mclone.core.session import Session


MANIFEST_FILE = ".mclone"
FORMAT_VERSION = 0


class Volume:
    """A replica: one directory and its manifest."""

    def __init__(self, session: "Session", file: Path, id: Optional[str] = None):
        self.session = session
        self.file = Path(file)
        self.id = id or generate_id()
        self._root: Optional[Path] = None
        self._snapshot: Optional[list[dict[str, Any]]] = None

    @property
    def root(self) -> Path:
        """Canonical (symlink-resolved) directory holding the manifest."""
        if self._root is None:
            self._root = self.file.parent.resolve()
        return self._root

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Volume):
            return NotImplemented
        return self is other or self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"Volume({self.id!r}, {str(self.root)!r})"

    # ---- Restore ----

    @classmethod
    def restore(cls, session: "Session", file: Path) -> "Volume":
        """Load a volume from its manifest and merge its tasks into the session.

        Raises:
            FileNotFoundError: If the manifest does not exist
            ManifestError: If the manifest is malformed or of an unsupported version
        """
        file = Path(file)
        raw = file.read_bytes()
        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise ManifestError(f'malformed mclone volume file "{file}": {e}', path=str(file)) from e
        if not isinstance(data, dict):
            raise ManifestError(f'malformed mclone volume file "{file}"', path=str(file))

        version = data.get("mclone")
        if version != FORMAT_VERSION:
            raise ManifestError(f'unsupported mclone volume format version "{version}"', path=str(file))
        if "volume" not in data or not isinstance(data.get("tasks", []), list):
            raise ManifestError(f'malformed mclone volume file "{file}"', path=str(file))

        volume = cls(session, file, id=str(data["volume"]))
        try:
            tasks = [Task.restore(record, session.credentials) for record in data.get("tasks", [])]
        except ManifestError as e:
            raise ManifestError(f'{e} in "{file}"', path=str(file)) from e
        session.tasks.merge(tasks)
        volume._snapshot = volume._records(
            (t for t in tasks if t.references(volume.id)), resolve_credential=False
        )
        logger.debug(f"Restored volume {volume.id} from {file} ({len(tasks)} tasks)")
        return volume

    # ---- Views ----

    def relevant_tasks(self) -> list[Task]:
        """Tasks of the shared collection referencing this volume."""
        return [task for task in self.session.tasks if task.references(self.id)]

    def owns_tasks(self) -> bool:
        return any(task.references(self.id) for task in self.session.tasks)

    def _records(self, tasks, resolve_credential: bool = True) -> list[dict[str, Any]]:
        records = [task.to_record(self.id, resolve_credential) for task in tasks]
        records.sort(key=lambda r: r["task"])
        return records

    def modified(self) -> bool:
        """True if the relevant view differs from what is on disk, or the shared set changed."""
        if self.session.tasks.modified:
            return True
        return self._records(self.relevant_tasks()) != self._snapshot

    def to_dict(self) -> dict[str, Any]:
        return {
            "mclone": FORMAT_VERSION,
            "volume": self.id,
            "tasks": self._records(self.relevant_tasks()),
        }

    # ---- Persistence ----

    def commit(self, force: bool = False) -> bool:
        """Write the manifest if forced or modified; return whether it was written."""
        if not (force or self.modified()):
            logger.debug(f"Volume {self.id} unchanged; not writing {self.file}")
            return False
        data = self.to_dict()
        self._write_atomic(orjson.dumps(data, option=orjson.OPT_INDENT_2) + b"\n")
        self._snapshot = data["tasks"]
        logger.info(f"Committed volume {self.id} to {self.file} ({len(data['tasks'])} tasks)")
        return True

    def _write_atomic(self, content: bytes) -> None:
        temp_path = self.file.with_name(f"{self.file.name}.pending-{uuid.uuid4().hex[:8]}")
        try:
            temp_path.write_bytes(content)
            os.replace(temp_path, self.file)
        finally:
            temp_path.unlink(missing_ok=True)

    def delete(self, force: bool = False, simulate: bool = False) -> None:
        """Remove the manifest; refused while the volume still owns tasks."""
        if self.owns_tasks() and not force:
            raise GuardError(f'refuse to delete non-empty mclone volume file "{self.file}"')
        if simulate:
            logger.info(f"Dry run: volume {self.id} manifest {self.file} kept")
            return
        self.file.unlink(missing_ok=True)
        logger.info(f"Deleted volume {self.id} manifest {self.file}")
