"""
Unit tests for verbose logging functionality in GitHubDownloader API.
"""

import logging
from unittest.mock import patch

import pytest

from ghparts.interfaces.api import GitHubDownloader
from ghparts.infrastructure.logger import logger


@pytest.fixture(autouse=True)
def restore_logger_level():
    level = logger.level
    yield
    logger.setLevel(level)


class TestVerboseLogging:
    """Test cases for verbose logging functionality."""

    def test_default_initialization(self):
        downloader = GitHubDownloader()
        assert downloader.verbose is False

    def test_verbose_initialization(self):
        downloader = GitHubDownloader(verbose=True)
        assert downloader.verbose is True

    @patch('ghparts.interfaces.api.logger')
    def test_logger_level_verbose_true(self, mock_logger):
        GitHubDownloader(verbose=True)
        mock_logger.setLevel.assert_called_with(logging.DEBUG)

    @patch('ghparts.interfaces.api.logger')
    def test_logger_level_verbose_false(self, mock_logger):
        GitHubDownloader(verbose=False)
        mock_logger.setLevel.assert_called_with(logging.INFO)

    @patch('ghparts.interfaces.api.logger')
    def test_set_verbose_method_enable(self, mock_logger):
        downloader = GitHubDownloader(verbose=False)
        downloader.set_verbose(True)

        assert downloader.verbose is True
        assert mock_logger.setLevel.call_count >= 2
        mock_logger.setLevel.assert_called_with(logging.DEBUG)

    def test_verbose_mode_toggle(self):
        downloader = GitHubDownloader()

        downloader.set_verbose(True)
        assert downloader.verbose is True
        assert logger.level == logging.DEBUG

        downloader.set_verbose(False)
        assert downloader.verbose is False
        assert logger.level == logging.INFO

    @pytest.mark.asyncio
    async def test_verbose_download_lists_matched_files(self, http_client, config, tmp_path, caplog):
        downloader = GitHubDownloader(config=config, verbose=True, client=http_client)

        with caplog.at_level(logging.DEBUG, logger="ghparts"):
            await downloader.download("acme/sample/main", tmp_path, path="docs")

        assert "matched docs/readme.md" in caplog.text
        assert "matched docs/img/logo.png" in caplog.text
