# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/system/mounts.py

"""Discovery of candidate volume roots on this host."""

import os
import re
import string
import sys
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from mclone.config.manager import UserConfig
from mclone.system.execution import CommandExecutor as ce


MCLONE_PATH_ENV = "MCLONE_PATH"
MOUNTSTATS = Path("/proc/self/mountstats")

# Pseudo filesystems never hold volumes
UNIX_SYSTEM_MOUNTS = re.compile(r"^/(dev|sys|proc|run)(/|$)")


def environment_mounts() -> list[Path]:
    """Existing directories listed in $MCLONE_PATH."""
    value = os.getenv(MCLONE_PATH_ENV, "")
    return [Path(p) for p in value.split(os.pathsep) if p and Path(p).is_dir()]


def _filter_unix_mounts(mounts: Iterable[str]) -> list[Path]:
    return [Path(m) for m in mounts if not UNIX_SYSTEM_MOUNTS.match(m) and Path(m).is_dir()]


def _linux_mounts() -> list[str]:
    # Lines look like: "device /dev/sda1 mounted on /home with fstype ext4"
    mounts = []
    for line in MOUNTSTATS.read_text(encoding="utf-8", errors="replace").splitlines():
        fields = line.split()
        if len(fields) > 4 and fields[0] == "device":
            mounts.append(fields[4])
    return mounts


def _posix_mounts() -> list[str]:
    # Lines look like: "/dev/disk1s1 on / (apfs, local, journaled)"
    result = ce.run_local(["mount"], timeout=30)
    return [fields[2] for fields in (line.split() for line in result.stdout.splitlines()) if len(fields) > 2]


def _windows_drives() -> list[Path]:
    return [Path(f"{letter}:/") for letter in string.ascii_uppercase if os.path.isdir(f"{letter}:/")]


def system_mounts(platform: Optional[str] = None) -> list[Path]:
    """Live mount points (drive letters on Windows) that may contain volumes."""
    platform = platform or sys.platform
    try:
        if platform == "win32":
            return _windows_drives()
        if platform.startswith("linux"):
            return _filter_unix_mounts(_linux_mounts())
        return _filter_unix_mounts(_posix_mounts())
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read the system mount table: {e}")
        return []


def candidate_roots(config: Optional[UserConfig] = None) -> list[Path]:
    """All directories worth probing for a volume manifest, first occurrence wins."""
    config = config or UserConfig()
    candidates = environment_mounts() + list(config.search_paths)
    if config.scan_system_mounts:
        candidates += system_mounts()

    seen = set()
    roots = []
    for path in candidates:
        key = os.path.normcase(os.path.abspath(path))
        if key not in seen:
            seen.add(key)
            roots.append(path)
    logger.debug(f"Candidate volume roots: {', '.join(str(r) for r in roots) or '(none)'}")
    return roots
