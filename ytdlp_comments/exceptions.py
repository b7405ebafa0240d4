"""Exception hierarchy for the comment downloader."""

from typing import Optional


INVALID_URL_MESSAGE = "Invalid or unsupported URL format"
DOWNLOAD_FAILED_PREFIX = "Failed to download comments: "


class CommentDownloadError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(CommentDownloadError):
    """Raised when a URL is rejected before any work is done."""

    def __init__(self, message: str = INVALID_URL_MESSAGE, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class ProcessError(CommentDownloadError):
    """Raised when the downloader binary cannot be spawned or exits non-zero."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        """
        Initialize the process error.

        Args:
            message: Human-readable description, usually the captured stderr
            returncode: Exit code of the process (None if it never ran)
            stderr: Raw captured standard error output
        """
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ParseError(CommentDownloadError):
    """Raised when the downloader output is not a usable JSON document."""


class DownloadError(CommentDownloadError):
    """Terminal failure of a download, wrapping the underlying cause."""

    def __init__(self, cause: BaseException):
        super().__init__(f"{DOWNLOAD_FAILED_PREFIX}{cause}")
        self.cause = cause
