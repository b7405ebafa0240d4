"""Core download flow: validate, run yt-dlp in a scratch directory, normalize."""

import logging
from contextlib import nullcontext
from typing import Awaitable, Callable, Optional, Sequence

from ytdlp_comments.config import Config
from ytdlp_comments.exceptions import DownloadError, ValidationError
from ytdlp_comments.models.mapping import normalize
from ytdlp_comments.process import build_comment_args, run_process
from ytdlp_comments.scratch import scratch_dir
from ytdlp_comments.validation import validate_url

logger = logging.getLogger(__name__)

ProcessRunner = Callable[..., Awaitable[str]]


class CommentDownloader:
    """Downloads and normalizes the comments of one video per call."""

    def __init__(
        self,
        config: Config,
        prometheus_exporter=None,
        runner: Optional[ProcessRunner] = None,
    ):
        """
        Initialize the downloader.

        Args:
            config: Application configuration
            prometheus_exporter: Optional Prometheus metrics exporter
            runner: Coroutine used to run the binary (defaults to run_process)
        """
        self.config = config
        self.prometheus_exporter = prometheus_exporter
        self.runner = runner or run_process

    def is_supported(self, url: str) -> bool:
        return validate_url(url, self.config.url.allowed_hosts)

    async def _run_downloader(self, args: Sequence[str], work_dir: str) -> str:
        if self.prometheus_exporter:
            timer = self.prometheus_exporter.time_download()
        else:
            timer = None

        with timer if timer else nullcontext():
            return await self.runner(
                self.config.downloader.binary,
                list(args),
                cwd=work_dir,
                timeout=self.config.downloader.timeout_sec,
            )

    async def download(self, url: str) -> str:
        """
        Download the comments of a video.

        Args:
            url: Video URL

        Returns:
            JSON text of the comments envelope (or the no-comments envelope)

        Raises:
            ValidationError: If the URL is rejected; nothing is run or created
            DownloadError: If the downloader fails or its output cannot be parsed
        """
        if not self.is_supported(url):
            logger.warning(f"Rejected unsupported URL: {url!r}")
            raise ValidationError(url=url)

        if self.prometheus_exporter:
            self.prometheus_exporter.record_download_started()

        logger.info(f"Downloading comments for {url}")
        try:
            with scratch_dir(self.config.file.temp_dir_prefix) as work_dir:
                output = await self._run_downloader(build_comment_args(url), work_dir)
                result = normalize(output)
        except Exception as e:
            logger.error(f"Failed to download comments for {url}: {e}")
            if self.prometheus_exporter:
                self.prometheus_exporter.record_download_error(type(e).__name__)
            raise DownloadError(e) from e

        if self.prometheus_exporter:
            self.prometheus_exporter.record_download_succeeded()
        return result


async def download_comments(url: str, config: Config) -> str:
    """
    Download the comments of a video as envelope JSON text.

    Args:
        url: Video URL
        config: Application configuration

    Returns:
        JSON text of the comments envelope

    Example:
        >>> text = asyncio.run(download_comments("https://youtu.be/abc", Config()))  # doctest: +SKIP
    """
    return await CommentDownloader(config).download(url)
