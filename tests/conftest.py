# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# tests/conftest.py

"""
Shared test fixtures for the mclone test suite.

Volumes live in tmp_path subdirectories; sessions never scan the real
mount table and never call a real rclone.
"""

from pathlib import Path

import pytest

from mclone.config.manager import UserConfig
from mclone.core.session import Session


def fake_obscure(password: str) -> str:
    """Deterministic stand-in for `rclone obscure`."""
    return f"obscured-{password}"


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep host config, $MCLONE_PATH and $RCLONE out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("MCLONE_CONFIG_HOME", raising=False)
    monkeypatch.delenv("MCLONE_PATH", raising=False)
    monkeypatch.delenv("RCLONE", raising=False)
    monkeypatch.setattr(
        "mclone.config.manager._get_user_config_search_paths",
        lambda: (home / ".config" / "mclone" / "mclone.yml",),
    )
    return home


@pytest.fixture
def obscurer():
    return fake_obscure


@pytest.fixture
def test_config():
    return UserConfig(scan_system_mounts=False)


@pytest.fixture
def make_session(test_config):
    """Factory for sessions using the fake obscurer."""
    def _make(**kwargs) -> Session:
        kwargs.setdefault("config", test_config)
        kwargs.setdefault("obscurer", fake_obscure)
        return Session(**kwargs)
    return _make


@pytest.fixture
def session(make_session):
    return make_session()


@pytest.fixture
def volume_dirs(tmp_path) -> dict[str, Path]:
    """Three plain directories to be formatted as volumes."""
    dirs = {}
    for name in ("alpha", "beta", "gamma"):
        path = tmp_path / "media" / name
        path.mkdir(parents=True)
        dirs[name] = path
    return dirs


@pytest.fixture
def two_volumes(session, volume_dirs):
    """Session with alpha and beta formatted as volumes."""
    alpha = session.format_volume(volume_dirs["alpha"])
    beta = session.format_volume(volume_dirs["beta"])
    return session, alpha, beta
