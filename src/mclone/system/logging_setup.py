# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# src/mclone/system/logging_setup.py

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from mclone.config.manager import UserConfig


LOG_FILE = "mclone.log"


def console_level(verbose: bool = False, debug: bool = False) -> str:
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    return "WARNING"


def setup_logging(verbose: bool = False, debug: bool = False, config: Optional[UserConfig] = None) -> None:
    """Setup loguru logging for the entire application.

    Configures:
    - Console output: WARNING+ (INFO+ with --verbose, DEBUG+ with --debug)
    - File output: DEBUG+ if local_log is configured in user config
    """
    logger.remove()

    logger.add(
        sys.stderr,
        level=console_level(verbose, debug),
        format="<level>{level}</level>: {message}",
        colorize=True
    )

    if config is None or not config.local_log:
        return

    try:
        log_dir = Path(config.local_log)
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / LOG_FILE

        logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="10 MB",
            retention="30 days",
            compression="gz"
        )
        logger.debug(f"File logging enabled: {log_file}")

    except Exception as e:
        # Don't fail the entire application if logging setup fails
        logger.warning(f"Failed to setup file logging: {e}")
