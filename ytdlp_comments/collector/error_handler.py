"""Consecutive failure tracking for batch downloads."""

import logging

logger = logging.getLogger(__name__)


class ConsecutiveErrorTracker:
    """
    Counts yt-dlp failures in a row during a batch.

    A run of failures usually means the host is rate limiting us or the
    binary is broken, so the batch stops starting new downloads once the
    count reaches ``threshold``. Any successful download resets the count.
    """

    def __init__(self, threshold: int, prometheus_exporter=None):
        """
        Args:
            threshold: Number of failed downloads in a row that stops the batch
            prometheus_exporter: Optional exporter that mirrors the count as a gauge
        """
        self.threshold = threshold
        self.consecutive_errors = 0
        self.prometheus_exporter = prometheus_exporter

    def _publish(self) -> None:
        if self.prometheus_exporter:
            self.prometheus_exporter.set_consecutive_failures(self.consecutive_errors)

    def record_error(self) -> None:
        self.consecutive_errors += 1
        logger.warning(f"{self.consecutive_errors}/{self.threshold} downloads failed in a row")
        self._publish()

    def record_success(self) -> None:
        if self.consecutive_errors == 0:
            return
        logger.info(f"Download succeeded after {self.consecutive_errors} failures in a row")
        self.consecutive_errors = 0
        self._publish()

    def should_abort(self) -> bool:
        """True once the batch should stop starting new downloads."""
        return self.consecutive_errors >= self.threshold
