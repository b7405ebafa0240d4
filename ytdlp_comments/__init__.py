"""Download video comments with yt-dlp and normalize them to a stable JSON schema."""

from ytdlp_comments.collector.downloader import CommentDownloader, download_comments
from ytdlp_comments.config import Config
from ytdlp_comments.exceptions import (
    CommentDownloadError,
    DownloadError,
    ParseError,
    ProcessError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "CommentDownloader",
    "CommentDownloadError",
    "Config",
    "DownloadError",
    "ParseError",
    "ProcessError",
    "ValidationError",
    "download_comments",
]
