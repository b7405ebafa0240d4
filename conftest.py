"""Project-level pytest configuration and shared fixtures."""

import pytest

from ytdlp_comments.config import Config


@pytest.fixture
def test_config():
    """Default configuration with a recognisable scratch prefix."""
    config = Config()
    config.file.temp_dir_prefix = "ytdlp-test-"
    return config
