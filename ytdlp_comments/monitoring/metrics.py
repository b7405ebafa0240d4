"""Prometheus metrics for monitoring comment downloads."""

import logging

from prometheus_client import Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

DOWNLOADS_STARTED = Counter(
    "ytdlp_comments_downloads_started_total",
    "Number of comment downloads started",
)

DOWNLOADS_SUCCEEDED = Counter(
    "ytdlp_comments_downloads_succeeded_total",
    "Number of comment downloads that produced an envelope",
)

DOWNLOAD_ERRORS = Counter(
    "ytdlp_comments_download_errors_total",
    "Number of failed comment downloads",
    ["error_type"],
)

CONSECUTIVE_FAILURES = Gauge(
    "ytdlp_comments_consecutive_failures",
    "Number of consecutive failed downloads in the current batch",
)

DOWNLOAD_DURATION = Histogram(
    "ytdlp_comments_download_duration_seconds",
    "Duration of downloader runs in seconds",
    buckets=[1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)


class PrometheusExporter:
    """Prometheus metrics exporter for the comment downloader."""

    def __init__(self, port: int = 8000):
        """
        Initialize the Prometheus exporter.

        Args:
            port: Port to expose metrics on
        """
        self.port = port
        self.server_started = False

    def start_server(self) -> None:
        """Start the Prometheus metrics server."""
        if not self.server_started:
            try:
                start_http_server(self.port)
                self.server_started = True
                logger.info(f"Started Prometheus metrics server on port {self.port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus metrics server: {str(e)}")

    def record_download_started(self) -> None:
        DOWNLOADS_STARTED.inc()

    def record_download_succeeded(self) -> None:
        DOWNLOADS_SUCCEEDED.inc()

    def record_download_error(self, error_type: str) -> None:
        """
        Record a failed download.

        Args:
            error_type: Exception class name of the cause (e.g. 'ProcessError')
        """
        DOWNLOAD_ERRORS.labels(error_type=error_type).inc()

    def set_consecutive_failures(self, count: int) -> None:
        CONSECUTIVE_FAILURES.set(count)

    def time_download(self):
        """Context manager timing one downloader run."""
        return DOWNLOAD_DURATION.time()
