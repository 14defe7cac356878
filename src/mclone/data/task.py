# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/data/task.py

"""
Sync task entity and the crypt credential registry.

A Task is a directional edge between two volumes. Its identity (`id`) is a
random handle; its equality is the logical key (source volume, destination
volume, source root, destination root). The two are independent on purpose:
the same logical task may be known under different identities on different
volumes until the session merges them.

Tasks are values. A change produces a new Task through `modified()`, which
keeps the identity and refreshes the timestamp so the change wins
last-write-wins merging.

Secret partitioning: a task in `encrypt` mode stores its crypt token only in
the manifest of its source volume, a task in `decrypt` mode only in the
manifest of its destination volume.
"""

from __future__ import annotations

import re
import secrets
import string
from datetime import datetime, timedelta, UTC
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger

from mclone.system.exceptions import (
    AmbiguousPatternError,
    CredentialError,
    ManifestError,
    NotFoundError,
    PatternError,
    ValidationError,
)


PASSWORD_LENGTH = 16
PASSWORD_ALPHABET = string.ascii_letters + string.digits


class TaskMode(str, Enum):
    UPDATE = "update"
    SYNCHRONIZE = "synchronize"
    COPY = "copy"
    MOVE = "move"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "TaskMode | str") -> "TaskMode":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f'unknown mode "{value}"') from None

    @classmethod
    def resolve(cls, pattern: str) -> "TaskMode":
        """Resolve a full or partial mode name pattern (e.g. "sync", "^up")."""
        for m in cls:
            if m.value == pattern:
                return m
        try:
            rx = re.compile(pattern)
        except re.error as e:
            raise PatternError(f'invalid mode pattern "{pattern}": {e}', pattern=pattern) from e
        matches = [m for m in cls if rx.search(m.value)]
        if not matches:
            raise NotFoundError(f'no modes matching pattern "{pattern}"', pattern=pattern)
        if len(matches) > 1:
            raise AmbiguousPatternError(f'ambiguous mode pattern "{pattern}"', pattern=pattern)
        return matches[0]


class CrypterMode(str, Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: "CrypterMode | str | None") -> Optional["CrypterMode"]:
        if value is None or value == "":
            return None
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f'unknown crypter mode "{value}"') from None


def generate_id() -> str:
    """Random opaque identity shared by tasks and volumes."""
    return secrets.token_hex(4)


def generate_password() -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(PASSWORD_LENGTH))


def _now() -> datetime:
    return datetime.now(UTC)


def fresh_mtime(previous: Optional[datetime] = None) -> datetime:
    """Current time, or just after `previous` if the clock lags behind it."""
    mtime = _now()
    if previous is not None and mtime <= previous:
        mtime = previous + timedelta(microseconds=1)
    return mtime


def _parse_mtime(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        mtime = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if mtime.tzinfo is None:
        mtime = mtime.replace(tzinfo=UTC)
    return mtime


def _normalize_filter(value: Optional[str]) -> Optional[str]:
    return value if value else None


class CredentialRegistry:
    """
    Per-session mapping of task identity to resolved crypt token.

    Every copy of a task (restored from several manifests, or derived by
    modification) shares one token through its identity. The obscurer turns a
    plaintext password into a token; it is only called when no token is known.
    """

    def __init__(self, obscurer: Callable[[str], str]):
        self._obscure = obscurer
        self._tokens: dict[str, str] = {}

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._tokens

    def __len__(self) -> int:
        return len(self._tokens)

    def get(self, task_id: str) -> Optional[str]:
        return self._tokens.get(task_id)

    def register(self, task_id: str, token: str) -> str:
        """Record token for task_id; a different token already recorded is an error."""
        existing = self._tokens.get(task_id)
        if existing is not None and existing != token:
            raise CredentialError(f'conflicting crypt tokens for task "{task_id}"')
        self._tokens[task_id] = token
        return token

    def resolve(self, task_id: str, password: Optional[str] = None) -> str:
        """Return the token for task_id, deriving and caching it if unknown."""
        token = self._tokens.get(task_id)
        if token is None:
            if password is None:
                logger.info(f"Generating random crypt password for task {task_id}")
                password = generate_password()
            token = self.register(task_id, self._obscure(password))
        return token


class Task:
    """A sync task between two volumes."""

    def __init__(
        self,
        source_id: str,
        source_root: str,
        destination_id: str,
        destination_root: str,
        *,
        mode: "TaskMode | str" = TaskMode.UPDATE,
        include: Optional[str] = None,
        exclude: Optional[str] = None,
        crypter_mode: "CrypterMode | str | None" = None,
        crypter_token: Optional[str] = None,
        crypter_password: Optional[str] = None,
        registry: Optional[CredentialRegistry] = None,
        id: Optional[str] = None,
        mtime: Optional[datetime] = None,
    ):
        self._id = id or generate_id()
        self._source_id = source_id
        self._destination_id = destination_id
        self._source_root = source_root or ""
        self._destination_root = destination_root or ""
        self._mode = TaskMode.parse(mode)
        self._include = _normalize_filter(include)
        self._exclude = _normalize_filter(exclude)
        self._crypter_mode = CrypterMode.parse(crypter_mode)
        crypter_token = crypter_token or None
        crypter_password = crypter_password or None
        if self._crypter_mode is None and (crypter_token is not None or crypter_password is not None):
            raise ValidationError("crypt token or password given without encrypt/decrypt mode")
        if crypter_token is not None and crypter_password is not None:
            raise ValidationError("specify either plain text password or crypt token, not both")
        self._crypter_token = crypter_token
        self._crypter_password = crypter_password
        self._registry = registry
        self._mtime = mtime or _now()
        if crypter_token is not None and registry is not None:
            registry.register(self._id, crypter_token)

    # ---- Attributes ----

    @property
    def id(self) -> str:
        return self._id

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def destination_id(self) -> str:
        return self._destination_id

    @property
    def source_root(self) -> str:
        return self._source_root

    @property
    def destination_root(self) -> str:
        return self._destination_root

    @property
    def mode(self) -> TaskMode:
        return self._mode

    @property
    def include(self) -> Optional[str]:
        return self._include

    @property
    def exclude(self) -> Optional[str]:
        return self._exclude

    @property
    def mtime(self) -> datetime:
        return self._mtime

    @property
    def crypter_mode(self) -> Optional[CrypterMode]:
        return self._crypter_mode

    @property
    def crypter_token(self) -> Optional[str]:
        """Crypt token, resolved on first use."""
        if self._crypter_mode is None:
            return None
        if self._crypter_token is not None:
            if self._registry is not None and self._id not in self._registry:
                self._registry.register(self._id, self._crypter_token)
            return self._crypter_token
        if self._registry is None:
            raise CredentialError(f'no credential registry to resolve crypt token of task "{self._id}"')
        return self._registry.resolve(self._id, self._crypter_password)

    def known_crypter_token(self) -> Optional[str]:
        """Crypt token if already known, without deriving a new one."""
        if self._crypter_mode is None:
            return None
        if self._crypter_token is not None:
            return self._crypter_token
        return self._registry.get(self._id) if self._registry is not None else None

    def references(self, volume_id: str) -> bool:
        return volume_id in (self._source_id, self._destination_id)

    def holds_credential(self, volume_id: str) -> bool:
        """True if volume_id is entitled to store this task's crypt token."""
        if self._crypter_mode is CrypterMode.ENCRYPT:
            return volume_id == self._source_id
        if self._crypter_mode is CrypterMode.DECRYPT:
            return volume_id == self._destination_id
        return False

    # ---- Equality ----

    def _key(self) -> tuple[str, str, str, str]:
        return (self._source_id, self._destination_id, self._source_root, self._destination_root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self is other or self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (f"Task({self._id!r}, {self._mode.value}, "
                f"{self._source_id}:{self._source_root!r} -> "
                f"{self._destination_id}:{self._destination_root!r})")

    # ---- Copy-on-write ----

    def modified(
        self,
        mode: "TaskMode | str | None" = None,
        include: Optional[str] = None,
        exclude: Optional[str] = None,
    ) -> "Task":
        """Return a copy with the given attributes changed and a newer timestamp."""
        mtime = fresh_mtime(self._mtime)
        return Task(
            self._source_id,
            self._source_root,
            self._destination_id,
            self._destination_root,
            mode=self._mode if mode is None else mode,
            include=self._include if include is None else include,
            exclude=self._exclude if exclude is None else exclude,
            crypter_mode=self._crypter_mode,
            crypter_token=self._crypter_token,
            crypter_password=self._crypter_password,
            registry=self._registry,
            id=self._id,
            mtime=mtime,
        )

    # ---- Serialization ----

    def to_record(self, volume_id: str, resolve_credential: bool = True) -> dict[str, Any]:
        """Manifest record of this task as persisted by volume `volume_id`.

        With resolve_credential false a token that is not known yet is left
        out instead of being derived.
        """
        source: dict[str, str] = {"volume": self._source_id}
        if self._source_root:
            source["root"] = self._source_root
        destination: dict[str, str] = {"volume": self._destination_id}
        if self._destination_root:
            destination["root"] = self._destination_root

        record: dict[str, Any] = {
            "task": self._id,
            "mode": self._mode.value,
            "mtime": self._mtime.isoformat(),
            "source": source,
            "destination": destination,
        }
        if self._include is not None:
            record["include"] = self._include
        if self._exclude is not None:
            record["exclude"] = self._exclude
        if self._crypter_mode is not None:
            crypter: dict[str, str] = {"mode": self._crypter_mode.value}
            if self.holds_credential(volume_id):
                token = self.crypter_token if resolve_credential else self.known_crypter_token()
                if token is not None:
                    crypter["token"] = token
            record["crypter"] = crypter
        return record

    @classmethod
    def restore(cls, record: Any, registry: Optional[CredentialRegistry] = None) -> "Task":
        """Rebuild a task from a manifest record, preserving its timestamp."""
        if not isinstance(record, dict):
            raise ManifestError(f"task record must be an object, got {type(record).__name__}")
        try:
            task_id = str(record["task"])
            source = record["source"]
            destination = record["destination"]
            source_id = str(source["volume"])
            destination_id = str(destination["volume"])
            mode = record["mode"]
        except (KeyError, TypeError) as e:
            raise ManifestError(f"task record is missing required field {e}") from e

        crypter = record.get("crypter") or {}
        if not isinstance(crypter, dict):
            raise ManifestError(f'task "{task_id}" has a malformed crypter entry')

        mtime = _parse_mtime(record.get("mtime"))
        if mtime is None:
            logger.warning(f'Task "{task_id}" has unparseable timestamp {record.get("mtime")!r}; using current time')

        return cls(
            source_id,
            source.get("root") or "",
            destination_id,
            destination.get("root") or "",
            mode=mode,
            include=record.get("include"),
            exclude=record.get("exclude"),
            crypter_mode=crypter.get("mode"),
            crypter_token=crypter.get("token"),
            registry=registry,
            id=task_id,
            mtime=mtime,
        )
