# Author: PB & Claude
# Maintainer: PB
# Original date: 2026.10.18
# License: (c) HRDAG, 2026, GPL-2 or newer
#
# ------
# tests/test_logging_setup.py

import pytest
from loguru import logger

from mclone.config.manager import UserConfig
from mclone.system.logging_setup import LOG_FILE, console_level, setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()


@pytest.mark.parametrize("verbose,debug,level", [
    (False, False, "WARNING"),
    (True, False, "INFO"),
    (False, True, "DEBUG"),
    (True, True, "DEBUG"),
])
def test_console_level(verbose, debug, level):
    assert console_level(verbose, debug) == level


class TestLoggingSetup:
    def test_setup_logging_without_config(self):
        setup_logging()
        assert len(logger._core.handlers) == 1

    def test_setup_logging_without_local_log(self):
        setup_logging(config=UserConfig())
        assert len(logger._core.handlers) == 1

    def test_setup_logging_with_local_log(self, tmp_path):
        log_dir = tmp_path / "logs"

        setup_logging(config=UserConfig(local_log=log_dir))
        logger.info("volume committed")

        assert len(logger._core.handlers) == 2
        log_text = (log_dir / LOG_FILE).read_text()
        assert "volume committed" in log_text
        assert "| INFO     |" in log_text

    def test_setup_logging_handles_log_dir_creation_failure(self, tmp_path):
        # A file where the log directory should be makes mkdir fail
        log_path = tmp_path / "logs"
        log_path.write_text("blocking file")

        setup_logging(config=UserConfig(local_log=log_path))

        assert len(logger._core.handlers) == 1

    def test_console_messages_use_level_prefix(self, capsys):
        setup_logging(verbose=True)
        logger.info("loaded volume 1a2b3c4d")
        logger.debug("hidden")
        err = capsys.readouterr().err
        assert "loaded volume 1a2b3c4d" in err
        assert "INFO" in err
        assert "hidden" not in err
