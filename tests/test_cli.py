"""Tests for the CLI module."""

import json
import os
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from ytdlp_comments.cli import app, summarize_batch
from ytdlp_comments.collector.batch import BatchResult
from ytdlp_comments.exceptions import DownloadError, ProcessError, ValidationError


MOCK_URL = "https://www.youtube.com/watch?v=test123"
ENVELOPE = '{"comments":[{"id":"c1","time":null}],"video_id":"test123","video_title":"T","comment_count":1}'


@patch("ytdlp_comments.cli.setup_logging")
class TestDownloadCommand(unittest.TestCase):
    """Test cases for the download command."""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_prints_envelope(self, mock_setup_logging):
        with patch("ytdlp_comments.cli.download_comments", AsyncMock(return_value=ENVELOPE)) as mock_download:
            result = self.runner.invoke(app, ["download", MOCK_URL, "--config", self.config_path])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.stdout.strip(), ENVELOPE)
        self.assertEqual(mock_download.await_args.args[0], MOCK_URL)
        mock_setup_logging.assert_called_once_with("WARNING")

    def test_pretty_output(self, mock_setup_logging):
        with patch("ytdlp_comments.cli.download_comments", AsyncMock(return_value=ENVELOPE)):
            result = self.runner.invoke(app, ["download", MOCK_URL, "-c", self.config_path, "--pretty"])

        self.assertEqual(result.exit_code, 0)
        self.assertIn('\n  "video_id": "test123"', result.stdout)
        self.assertEqual(json.loads(result.stdout), json.loads(ENVELOPE))

    def test_output_file(self, mock_setup_logging):
        output_path = os.path.join(self.temp_dir.name, "comments.json")

        with patch("ytdlp_comments.cli.download_comments", AsyncMock(return_value=ENVELOPE)):
            result = self.runner.invoke(
                app, ["download", MOCK_URL, "-c", self.config_path, "--output", output_path]
            )

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.stdout, "")
        with open(output_path, "r", encoding="utf-8") as f:
            self.assertEqual(f.read(), ENVELOPE)

    def test_timeout_option(self, mock_setup_logging):
        with patch("ytdlp_comments.cli.download_comments", AsyncMock(return_value=ENVELOPE)) as mock_download:
            result = self.runner.invoke(
                app, ["download", MOCK_URL, "-c", self.config_path, "--timeout", "30"]
            )

        self.assertEqual(result.exit_code, 0)
        config = mock_download.await_args.args[1]
        self.assertEqual(config.downloader.timeout_sec, 30.0)

    def test_invalid_timeout(self, mock_setup_logging):
        with patch("ytdlp_comments.cli.download_comments", AsyncMock()) as mock_download:
            result = self.runner.invoke(
                app, ["download", MOCK_URL, "-c", self.config_path, "--timeout", "0"]
            )

        self.assertEqual(result.exit_code, 1)
        mock_download.assert_not_awaited()

    def test_unwritable_output_file(self, mock_setup_logging):
        output_path = os.path.join(self.temp_dir.name, "missing", "comments.json")

        with patch("ytdlp_comments.cli.download_comments", AsyncMock(return_value=ENVELOPE)):
            result = self.runner.invoke(
                app, ["download", MOCK_URL, "-c", self.config_path, "--output", output_path]
            )

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cannot write", result.output)

    def test_invalid_url_exit_code(self, mock_setup_logging):
        with patch("ytdlp_comments.cli.download_comments", AsyncMock(side_effect=ValidationError())):
            result = self.runner.invoke(app, ["download", "https://vimeo.com/1", "-c", self.config_path])

        self.assertEqual(result.exit_code, 2)
        self.assertIn("Invalid or unsupported URL format", result.output)

    def test_download_failure_exit_code(self, mock_setup_logging):
        error = DownloadError(ProcessError("ERROR: Video unavailable"))

        with patch("ytdlp_comments.cli.download_comments", AsyncMock(side_effect=error)):
            result = self.runner.invoke(app, ["download", MOCK_URL, "-c", self.config_path])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Failed to download comments: ERROR: Video unavailable", result.output)

    def test_invalid_config(self, mock_setup_logging):
        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write("downloader:\n  binary: ''\n")

        with patch("ytdlp_comments.cli.download_comments", AsyncMock()) as mock_download:
            result = self.runner.invoke(app, ["download", MOCK_URL, "-c", self.config_path])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("downloader.binary must not be empty", result.output)
        mock_download.assert_not_awaited()


class TestValidateCommand(unittest.TestCase):
    """Test cases for the validate command."""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_valid(self):
        result = self.runner.invoke(app, ["validate", MOCK_URL, "-c", self.config_path])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(result.stdout.strip(), "valid")

    def test_invalid(self):
        result = self.runner.invoke(app, ["validate", "https://vimeo.com/1", "-c", self.config_path])

        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.stdout.strip(), "invalid")

    def test_allow_list_from_config(self):
        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write("url:\n  allowed_hosts:\n    - vimeo.com\n")

        result = self.runner.invoke(app, ["validate", "https://vimeo.com/1", "-c", self.config_path])

        self.assertEqual(result.exit_code, 0)


@patch("ytdlp_comments.collector.batch.tqdm.tqdm")
@patch("ytdlp_comments.cli.setup_logging")
class TestBatchCommand(unittest.TestCase):
    """Test cases for the batch command."""

    def setUp(self):
        self.runner = CliRunner()
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = os.path.join(self.temp_dir.name, "config.yaml")
        self.urls_path = os.path.join(self.temp_dir.name, "urls.txt")
        with open(self.urls_path, "w", encoding="utf-8") as f:
            f.write("https://youtu.be/aaa\n# comment\nhttps://youtu.be/bbb\n")

    def tearDown(self):
        self.temp_dir.cleanup()

    def _mock_downloader(self, mock_downloader_cls, side_effect):
        instance = MagicMock()
        instance.download = AsyncMock(side_effect=side_effect)
        mock_downloader_cls.return_value = instance
        return instance

    @patch("ytdlp_comments.cli.CommentDownloader")
    def test_all_succeed(self, mock_downloader_cls, mock_setup_logging, mock_tqdm):
        instance = self._mock_downloader(mock_downloader_cls, [ENVELOPE, ENVELOPE])

        result = self.runner.invoke(app, ["batch", self.urls_path, "-c", self.config_path])

        self.assertEqual(result.exit_code, 0)
        summary = json.loads(result.stdout)
        self.assertEqual(summary["total"], 2)
        self.assertEqual(summary["succeeded"], 2)
        self.assertEqual(instance.download.await_count, 2)

    @patch("ytdlp_comments.cli.CommentDownloader")
    def test_partial_failure_exit_code(self, mock_downloader_cls, mock_setup_logging, mock_tqdm):
        error = DownloadError(ProcessError("boom"))
        self._mock_downloader(mock_downloader_cls, [ENVELOPE, error])

        result = self.runner.invoke(
            app, ["batch", self.urls_path, "-c", self.config_path, "--concurrency", "1"]
        )

        self.assertEqual(result.exit_code, 1)
        self.assertIn('"failed": 1', result.output)

    @patch("ytdlp_comments.cli.CommentDownloader")
    def test_output_dir_and_concurrency_options(self, mock_downloader_cls, mock_setup_logging, mock_tqdm):
        self._mock_downloader(mock_downloader_cls, [ENVELOPE, ENVELOPE])
        out_dir = os.path.join(self.temp_dir.name, "out")

        with patch("ytdlp_comments.cli.BatchDownloader") as mock_batch_cls:
            mock_batch_cls.return_value.run = AsyncMock(return_value=[])
            result = self.runner.invoke(
                app, ["batch", self.urls_path, "-c", self.config_path, "-o", out_dir, "-n", "3"]
            )

        self.assertEqual(result.exit_code, 0)
        kwargs = mock_batch_cls.call_args.kwargs
        self.assertEqual(kwargs["concurrency"], 3)
        self.assertEqual(kwargs["output_dir"], out_dir)
        mock_batch_cls.return_value.run.assert_awaited_once_with(
            ["https://youtu.be/aaa", "https://youtu.be/bbb"]
        )

    def test_missing_urls_file(self, mock_setup_logging, mock_tqdm):
        result = self.runner.invoke(
            app, ["batch", os.path.join(self.temp_dir.name, "missing.txt"), "-c", self.config_path]
        )

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cannot read", result.output)

    @patch("ytdlp_comments.cli.PrometheusExporter")
    @patch("ytdlp_comments.cli.CommentDownloader")
    def test_prometheus_enabled(self, mock_downloader_cls, mock_exporter_cls, mock_setup_logging, mock_tqdm):
        self._mock_downloader(mock_downloader_cls, [ENVELOPE, ENVELOPE])
        with open(self.config_path, "w", encoding="utf-8") as f:
            f.write("monitoring:\n  enable_prometheus: true\n  prometheus_port: 9100\n")

        result = self.runner.invoke(app, ["batch", self.urls_path, "-c", self.config_path])

        self.assertEqual(result.exit_code, 0)
        mock_exporter_cls.assert_called_once_with(port=9100)
        mock_exporter_cls.return_value.start_server.assert_called_once()


class TestSummarizeBatch(unittest.TestCase):

    def test_counts(self):
        results = [
            BatchResult(url="a", envelope="{}"),
            BatchResult(url="b", error="boom"),
            BatchResult(url="c", error="Skipped after 5 consecutive failures", skipped=True),
        ]

        summary = summarize_batch(results)

        self.assertEqual(
            (summary["total"], summary["succeeded"], summary["failed"], summary["skipped"]),
            (3, 1, 1, 1),
        )
        self.assertEqual(summary["results"][1], {"url": "b", "ok": False, "error": "boom", "output_path": None})


if __name__ == "__main__":
    unittest.main()
