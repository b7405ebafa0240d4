"""Data models for raw and normalized comment records."""

from typing import Any, List, Optional, TypedDict


NO_COMMENTS_MESSAGE = "No comments found or comments are disabled for this video"

# Copied verbatim from the raw record, in output order around "time"
PASSTHROUGH_BEFORE_TIME = ("id", "text", "author", "author_id")
PASSTHROUGH_AFTER_TIME = ("timestamp", "like_count", "is_favorited", "parent")


class RawComment(TypedDict, total=False):
    """
    Comment record as emitted by yt-dlp in the ``comments`` array.
    Every key is optional; the downloader owns this shape.
    """
    id: str
    text: str
    author: str
    author_id: str
    time_text: str  # Relative display time such as "2 months ago", not carried over
    timestamp: Optional[float]  # Unix seconds
    like_count: int
    is_favorited: bool
    parent: str  # "root" for top-level comments, otherwise the parent comment id


class NormalizedComment(TypedDict, total=False):
    """
    Comment record exposed to consumers.
    ``time`` is always present; the other keys only when the raw record had them.
    """
    id: Any
    text: Any
    author: Any
    author_id: Any
    time: Optional[str]  # ISO-8601 UTC, e.g. "2009-02-13T23:31:30.000Z"
    timestamp: Any
    like_count: Any
    is_favorited: Any
    parent: Any


class CommentsEnvelope(TypedDict, total=False):
    """Result for a payload that carried a ``comments`` array."""
    comments: List[NormalizedComment]
    video_id: Any
    video_title: Any
    comment_count: int


class NoCommentsEnvelope(TypedDict):
    """Result for a payload without a ``comments`` array."""
    comments: List[NormalizedComment]
    message: str
