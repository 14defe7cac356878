# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/system/execution.py

"""
Unified subprocess execution.

All calls to external programs (rclone transfers, `rclone obscure`, `mount`)
go through CommandExecutor so they can be observed and mocked in one place.
"""

import subprocess
from dataclasses import dataclass
from typing import Optional

from loguru import logger


@dataclass
class CommandResult:
    """Outcome of an external command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandExecutor:
    """Static helpers around subprocess.run."""

    @staticmethod
    def run_local(
        cmd: list[str],
        timeout: Optional[int] = None,
        check: bool = True,
        input: Optional[str] = None,
    ) -> CommandResult:
        """Run a command, capturing its output.

        Args:
            cmd: Argument vector
            timeout: Seconds before subprocess.TimeoutExpired is raised
            check: Raise ValueError on a non-zero exit code
            input: Text fed to the command's stdin

        Returns:
            CommandResult with captured stdout/stderr

        Raises:
            ValueError: If check is True and the command fails
            FileNotFoundError: If the executable does not exist
        """
        logger.debug(f"Running: {cmd[0]} {' '.join(cmd[1:])}")
        kwargs = {"capture_output": True, "text": True, "timeout": timeout}
        if input is not None:
            kwargs["input"] = input
        result = subprocess.run(cmd, **kwargs)
        command_result = CommandResult(
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
        if check and not command_result.success:
            if command_result.stderr.strip():
                raise ValueError(f"Local command failed: {command_result.stderr.strip()}")
            raise ValueError(f"Command failed with exit code {command_result.returncode}")
        return command_result

    @staticmethod
    def run_attached(cmd: list[str]) -> CommandResult:
        """Run a command with stdout/stderr attached to the terminal.

        Blocks until the command exits; no timeout. Output is not captured.
        """
        logger.debug(f"Running attached: {cmd[0]} ({len(cmd) - 1} arguments)")
        result = subprocess.run(cmd)
        return CommandResult(returncode=result.returncode)
