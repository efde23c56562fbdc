# tests/conftest.py

"""Shared pytest fixtures for the spot_deals test suite."""

import logging
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from spot_deals.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path) -> Generator[None, None, None]:
    """Point logs and the default output file at a per-test temp dir."""
    with patch.object(Settings, "LOGS_DIR", tmp_path / "logs"), \
            patch.object(
                Settings, "OUTPUT_PATH", tmp_path / "docs" / "spot_data.json"
            ):
        yield
    root_logger = logging.getLogger("spot_deals")
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
