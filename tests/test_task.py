# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# tests/test_task.py

from datetime import datetime, timedelta, UTC
from unittest.mock import MagicMock

import pytest

from mclone.data.task import (
    CredentialRegistry,
    CrypterMode,
    PASSWORD_ALPHABET,
    PASSWORD_LENGTH,
    Task,
    TaskMode,
    fresh_mtime,
    generate_password,
)
from mclone.system.exceptions import (
    AmbiguousPatternError,
    CredentialError,
    ManifestError,
    NotFoundError,
    ValidationError,
)


T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def registry(obscurer):
    return CredentialRegistry(obscurer)


class TestTaskMode:
    def test_parse_known(self):
        assert TaskMode.parse("synchronize") is TaskMode.SYNCHRONIZE

    def test_parse_unknown(self):
        with pytest.raises(ValidationError, match='unknown mode "mirror"'):
            TaskMode.parse("mirror")

    def test_resolve_partial(self):
        assert TaskMode.resolve("sync") is TaskMode.SYNCHRONIZE
        assert TaskMode.resolve("^up") is TaskMode.UPDATE
        assert TaskMode.resolve("mo") is TaskMode.MOVE

    def test_resolve_exact_wins(self):
        assert TaskMode.resolve("copy") is TaskMode.COPY

    def test_resolve_errors(self):
        with pytest.raises(NotFoundError):
            TaskMode.resolve("zzz")
        with pytest.raises(AmbiguousPatternError):
            TaskMode.resolve("o")


class TestCrypterMode:
    def test_parse_empty_is_none(self):
        assert CrypterMode.parse(None) is None
        assert CrypterMode.parse("") is None

    def test_parse_unknown(self):
        with pytest.raises(ValidationError):
            CrypterMode.parse("scramble")


class TestCredentialRegistry:
    def test_password_is_obscured_once(self, obscurer):
        obscure = MagicMock(side_effect=obscurer)
        registry = CredentialRegistry(obscure)
        assert registry.resolve("t1", "secret") == "obscured-secret"
        assert registry.resolve("t1", "ignored") == "obscured-secret"
        obscure.assert_called_once_with("secret")

    def test_random_password_when_none_given(self, obscurer):
        obscure = MagicMock(side_effect=obscurer)
        registry = CredentialRegistry(obscure)
        token = registry.resolve("t1")
        password = obscure.call_args.args[0]
        assert token == f"obscured-{password}"
        assert len(password) == PASSWORD_LENGTH

    def test_register_same_token_is_idempotent(self, registry):
        registry.register("t1", "tok")
        registry.register("t1", "tok")
        assert registry.get("t1") == "tok"
        assert len(registry) == 1

    def test_register_conflict(self, registry):
        registry.register("t1", "tok")
        with pytest.raises(CredentialError, match='conflicting crypt tokens for task "t1"'):
            registry.register("t1", "other")


def test_generate_password_alphabet():
    password = generate_password()
    assert len(password) == 16
    assert all(c in PASSWORD_ALPHABET for c in password)


def test_fresh_mtime_is_strictly_after_future_previous():
    future = datetime.now(UTC) + timedelta(days=1)
    assert fresh_mtime(future) > future


class TestTaskConstruction:
    def test_defaults(self):
        task = Task("v1", "", "v2", "")
        assert task.mode is TaskMode.UPDATE
        assert task.include is None and task.exclude is None
        assert task.crypter_mode is None
        assert task.crypter_token is None
        assert len(task.id) == 8
        assert task.mtime.tzinfo is not None

    def test_password_without_crypter_mode(self):
        with pytest.raises(ValidationError):
            Task("v1", "", "v2", "", crypter_password="secret")

    def test_token_and_password_together(self):
        with pytest.raises(ValidationError, match="either plain text password or crypt token"):
            Task("v1", "", "v2", "", crypter_mode="encrypt", crypter_token="tok", crypter_password="pw")

    def test_token_registered_at_construction(self, registry):
        Task("v1", "", "v2", "", crypter_mode="encrypt", crypter_token="tok", registry=registry, id="t1")
        assert registry.get("t1") == "tok"

    def test_conflicting_copies_rejected(self, registry):
        Task("v1", "", "v2", "", crypter_mode="encrypt", crypter_token="tok", registry=registry, id="t1")
        with pytest.raises(CredentialError):
            Task("v1", "", "v2", "", crypter_mode="encrypt", crypter_token="bad", registry=registry, id="t1")

    def test_token_derived_lazily_from_password(self, registry):
        task = Task("v1", "", "v2", "", crypter_mode="decrypt", crypter_password="pw", registry=registry, id="t1")
        assert "t1" not in registry
        assert task.known_crypter_token() is None
        assert task.crypter_token == "obscured-pw"
        assert task.known_crypter_token() == "obscured-pw"

    def test_crypter_token_without_registry(self):
        task = Task("v1", "", "v2", "", crypter_mode="encrypt")
        with pytest.raises(CredentialError):
            task.crypter_token


class TestTaskEquality:
    def test_equality_ignores_identity_and_attributes(self):
        a = Task("v1", "docs", "v2", "bak", mode="update", id="aaaa0000")
        b = Task("v1", "docs", "v2", "bak", mode="move", include="*.txt", id="bbbb1111")
        assert a == b
        assert hash(a) == hash(b)

    def test_direction_and_roots_matter(self):
        a = Task("v1", "docs", "v2", "bak")
        assert a != Task("v2", "bak", "v1", "docs")
        assert a != Task("v1", "docs", "v2", "other")

    def test_references(self):
        task = Task("v1", "", "v2", "")
        assert task.references("v1") and task.references("v2")
        assert not task.references("v3")


class TestTaskModified:
    def test_copy_keeps_identity_and_is_newer(self):
        task = Task("v1", "", "v2", "", mode="update", include="*.pdf", id="t1", mtime=T0)
        changed = task.modified(mode="synchronize")
        assert changed.id == "t1"
        assert changed.mode is TaskMode.SYNCHRONIZE
        assert changed.include == "*.pdf"
        assert changed.mtime > task.mtime
        assert task.mode is TaskMode.UPDATE

    def test_empty_string_clears_filter(self):
        task = Task("v1", "", "v2", "", include="*.pdf", exclude="*.tmp")
        changed = task.modified(include="")
        assert changed.include is None
        assert changed.exclude == "*.tmp"

    def test_modified_from_future_timestamp(self):
        future = datetime.now(UTC) + timedelta(hours=2)
        task = Task("v1", "", "v2", "", mtime=future)
        assert task.modified().mtime > future

    def test_credential_shared_with_copy(self, registry):
        task = Task("v1", "", "v2", "", crypter_mode="encrypt", crypter_password="pw", registry=registry, id="t1")
        assert task.modified(mode="copy").crypter_token == task.crypter_token == "obscured-pw"
        assert len(registry) == 1


class TestTaskRecords:
    def test_record_layout(self):
        task = Task("v1", "docs", "v2", "", mode="copy", exclude="*.tmp", id="t1", mtime=T0)
        record = task.to_record("v1")
        assert list(record) == ["task", "mode", "mtime", "source", "destination", "exclude"]
        assert record["source"] == {"volume": "v1", "root": "docs"}
        assert record["destination"] == {"volume": "v2"}
        assert record["mtime"] == T0.isoformat()

    def test_encrypt_token_only_on_source(self, registry):
        task = Task("src", "", "dst", "", crypter_mode="encrypt", crypter_token="tok", registry=registry)
        assert task.to_record("src")["crypter"] == {"mode": "encrypt", "token": "tok"}
        assert task.to_record("dst")["crypter"] == {"mode": "encrypt"}

    def test_decrypt_token_only_on_destination(self, registry):
        task = Task("src", "", "dst", "", crypter_mode="decrypt", crypter_token="tok", registry=registry)
        assert task.to_record("src")["crypter"] == {"mode": "decrypt"}
        assert task.to_record("dst")["crypter"] == {"mode": "decrypt", "token": "tok"}

    def test_unresolved_token_left_out_without_resolution(self, registry):
        task = Task("src", "", "dst", "", crypter_mode="encrypt", crypter_password="pw", registry=registry)
        assert "token" not in task.to_record("src", resolve_credential=False)["crypter"]
        assert len(registry) == 0

    def test_restore_round_trip_preserves_everything(self, registry):
        task = Task("src", "a", "dst", "b", mode="move", include="*.jpg", crypter_mode="encrypt",
                    crypter_token="tok", registry=registry, id="t1", mtime=T0)
        restored = Task.restore(task.to_record("src"), registry)
        assert restored == task
        assert restored.id == "t1"
        assert restored.mode is TaskMode.MOVE
        assert restored.mtime == T0
        assert restored.crypter_token == "tok"

    def test_restore_missing_field(self):
        with pytest.raises(ManifestError, match="missing required field"):
            Task.restore({"task": "t1", "mode": "copy", "source": {"volume": "v1"}})

    def test_restore_not_an_object(self):
        with pytest.raises(ManifestError):
            Task.restore(["task"])

    def test_restore_bad_timestamp_uses_now(self):
        record = {"task": "t1", "mode": "copy", "mtime": "yesterday",
                  "source": {"volume": "v1"}, "destination": {"volume": "v2"}}
        before = datetime.now(UTC)
        task = Task.restore(record)
        assert task.mtime >= before

    def test_restore_zulu_and_naive_timestamps(self):
        base = {"task": "t1", "mode": "copy", "source": {"volume": "v1"}, "destination": {"volume": "v2"}}
        zulu = Task.restore({**base, "mtime": "2026-03-01T12:00:00Z"})
        naive = Task.restore({**base, "mtime": "2026-03-01T12:00:00"})
        assert zulu.mtime == naive.mtime == T0
