# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/data/identity_set.py

"""
Two-way identity/equality collections.

An IdentitySet maps the stable identity string of each member (its `id`
attribute, the handle users type on the command line) to the member, and
indexes the same members by their own equality (`__eq__`/`__hash__`, the
logical dedup key). Both indices live behind insert() and remove() only, so
they cannot drift apart.

Inserting a member equal to an existing one replaces it. This is how the same
logical task arriving from two manifests under different identities collapses
into a single entry.
"""

from __future__ import annotations

import re
from typing import Generic, Iterable, Iterator, Optional, Protocol, TypeVar

from mclone.system.exceptions import AmbiguousPatternError, NotFoundError, PatternError


class Identified(Protocol):
    id: str


T = TypeVar("T", bound=Identified)


class IdentitySet(Generic[T]):
    """Collection of objects indexed both by identity and by equality."""

    kind = "object"

    def __init__(self, objs: Iterable[T] = ()):
        self._ids: dict[str, T] = {}
        self._objects: dict[T, T] = {}
        self._modified = False
        self.merge(objs)

    # ---- Queries ----

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._objects.values()))

    def __len__(self) -> int:
        return len(self._objects)

    def __bool__(self) -> bool:
        return bool(self._objects)

    def __contains__(self, obj: object) -> bool:
        return obj in self._objects

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentitySet):
            return NotImplemented
        return self._objects.keys() == other._objects.keys()

    __hash__ = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._objects.values())!r})"

    def ids(self) -> list[str]:
        return list(self._ids)

    def get(self, id: str) -> Optional[T]:
        """Return the member with the given identity or None."""
        return self._ids.get(id)

    def lookup(self, obj: T) -> Optional[T]:
        """Return the member considered equal to obj or None."""
        return self._objects.get(obj)

    @property
    def modified(self) -> bool:
        return self._modified

    def commit(self) -> "IdentitySet[T]":
        """Acknowledge structural changes made so far."""
        self._modified = False
        return self

    # ---- Pattern resolution ----

    def resolve_pattern(self, pattern: str) -> list[str]:
        """Return identities fully or partially matching the regular expression."""
        try:
            rx = re.compile(pattern)
        except re.error as e:
            raise PatternError(f'invalid {self.kind} pattern "{pattern}": {e}', pattern=pattern) from e
        return [id for id in self._ids if rx.search(str(id))]

    def resolve(self, pattern: str) -> str:
        """Resolve pattern to exactly one identity."""
        ids = self.resolve_pattern(pattern)
        if not ids:
            raise NotFoundError(f'no {self.kind} matching "{pattern}" pattern found', pattern=pattern)
        if len(ids) > 1:
            raise AmbiguousPatternError(
                f'ambiguous "{pattern}" pattern: two or more {self.kind}s match ({", ".join(ids)})',
                pattern=pattern,
            )
        return ids[0]

    # ---- Mutation ----

    def _forget(self, obj: T) -> bool:
        existing = self._objects.pop(obj, None)
        if existing is None:
            return False
        del self._ids[existing.id]
        return True

    def insert(self, obj: T) -> T:
        """Add obj, replacing any member equal to it or holding its identity."""
        self._forget(obj)
        holder = self._ids.get(obj.id)
        if holder is not None:
            self._forget(holder)
        self._objects[obj] = obj
        self._ids[obj.id] = obj
        self._modified = True
        return obj

    def remove(self, obj: T) -> bool:
        """Remove the member equal to obj; return True if something was removed."""
        removed = self._forget(obj)
        if removed:
            self._modified = True
        return removed

    def merge(self, objs: Iterable[T]) -> "IdentitySet[T]":
        for obj in objs:
            self.insert(obj)
        return self


class TaskSet(IdentitySet):
    """Task collection with last-write-wins insertion."""

    kind = "task"

    def insert(self, task):
        existing = self.lookup(task)
        if existing is not None and existing is not task and existing.mtime >= task.mtime:
            return task
        return super().insert(task)


class VolumeSet(IdentitySet):
    """Loaded volumes; volume equality is identity."""

    kind = "volume"
