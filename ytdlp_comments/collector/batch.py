"""Concurrent comment downloads for a list of video URLs."""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import tqdm

from ytdlp_comments.collector.downloader import CommentDownloader
from ytdlp_comments.collector.error_handler import ConsecutiveErrorTracker
from ytdlp_comments.exceptions import CommentDownloadError, ValidationError

logger = logging.getLogger(__name__)

SAFE_FILE_STEM = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


@dataclass
class BatchResult:
    """Outcome of one URL in a batch."""

    url: str
    envelope: Optional[str] = None
    error: Optional[str] = None
    output_path: Optional[str] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.envelope is not None


def read_url_file(path: str) -> List[str]:
    """
    Read URLs from a text file, one per line.

    Blank lines and lines starting with ``#`` are ignored.
    """
    urls = []
    with open(path, "r", encoding="utf-8") as file:
        for line in file:
            line = line.strip()
            if line and not line.startswith("#"):
                urls.append(line)
    return urls


class BatchDownloader:
    """
    Runner for downloading comments of many videos.

    Downloads run concurrently up to the configured limit. Once the error
    tracker reaches its threshold, URLs that have not started yet are skipped.
    """

    def __init__(
        self,
        downloader: CommentDownloader,
        error_tracker: ConsecutiveErrorTracker,
        concurrency: int = 4,
        output_dir: Optional[str] = None,
    ):
        """
        Initialize the batch runner.

        Args:
            downloader: Single-video downloader
            error_tracker: Tracker for consecutive download failures
            concurrency: Maximum number of downloader processes at once
            output_dir: Directory for per-video envelope files (None keeps results in memory)
        """
        self.downloader = downloader
        self.error_tracker = error_tracker
        self.concurrency = concurrency
        self.output_dir = Path(output_dir) if output_dir else None

    def _output_path(self, index: int, envelope: str) -> Path:
        video_id = json.loads(envelope).get("video_id")
        if isinstance(video_id, str) and SAFE_FILE_STEM.match(video_id):
            stem = video_id
        else:
            stem = f"{index:04d}"
        return self.output_dir / f"{stem}.json"

    def _write(self, index: int, envelope: str) -> str:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self._output_path(index, envelope)
        path.write_text(envelope, encoding="utf-8")
        logger.debug(f"Wrote {path}")
        return str(path)

    async def _download_one(
        self,
        index: int,
        url: str,
        semaphore: asyncio.Semaphore,
        progress: tqdm.tqdm,
    ) -> BatchResult:
        async with semaphore:
            try:
                if self.error_tracker.should_abort():
                    return BatchResult(
                        url=url,
                        error=f"Skipped after {self.error_tracker.consecutive_errors} consecutive failures",
                        skipped=True,
                    )

                try:
                    envelope = await self.downloader.download(url)
                except ValidationError as e:
                    return BatchResult(url=url, error=str(e))
                except CommentDownloadError as e:
                    self.error_tracker.record_error()
                    return BatchResult(url=url, error=str(e))

                self.error_tracker.record_success()
                if not self.output_dir:
                    return BatchResult(url=url, envelope=envelope)

                try:
                    output_path = self._write(index, envelope)
                except (OSError, UnicodeError) as e:
                    logger.error(f"Could not save comments for {url}: {e}")
                    return BatchResult(url=url, error=f"Failed to write output: {e}")
                return BatchResult(url=url, envelope=envelope, output_path=output_path)
            finally:
                progress.update(1)

    async def run(self, urls: Iterable[str]) -> List[BatchResult]:
        """
        Download comments for every URL.

        Args:
            urls: Video URLs

        Returns:
            One BatchResult per URL, in input order
        """
        urls = list(urls)
        semaphore = asyncio.Semaphore(self.concurrency)
        logger.info(f"Starting batch of {len(urls)} URLs (concurrency={self.concurrency})")

        with tqdm.tqdm(total=len(urls), desc="Downloading comments") as progress:
            results = await asyncio.gather(
                *(self._download_one(i, url, semaphore, progress) for i, url in enumerate(urls))
            )

        succeeded = sum(1 for r in results if r.ok)
        skipped = sum(1 for r in results if r.skipped)
        logger.info(
            f"Batch complete: {succeeded} succeeded, "
            f"{len(results) - succeeded - skipped} failed, {skipped} skipped"
        )
        return list(results)
