# tests/conftest.py

"""Shared pytest fixtures for all provider and service tests."""

import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def isolated_logs_dir(
    tmp_path: Path,
) -> Generator[Path, None, None]:
    """Send per-run log files to a temp dir and reset handlers."""
    logs_dir = tmp_path / "logs"
    with patch("src.config.settings.Settings.LOGS_DIR", logs_dir):
        yield logs_dir
    root_logger = logging.getLogger("dealscan")
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)
