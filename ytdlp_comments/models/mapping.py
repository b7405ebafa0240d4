"""Mapping functions to convert yt-dlp output to our comment envelopes."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional, Union

from ytdlp_comments.exceptions import ParseError
from ytdlp_comments.models.comment import (
    NO_COMMENTS_MESSAGE,
    PASSTHROUGH_AFTER_TIME,
    PASSTHROUGH_BEFORE_TIME,
    CommentsEnvelope,
    NoCommentsEnvelope,
    NormalizedComment,
    RawComment,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Envelope = Union[CommentsEnvelope, NoCommentsEnvelope]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Unexpected non-standard JSON constant {name}")


def format_timestamp(timestamp: Any) -> Optional[str]:
    """
    Format a Unix timestamp in seconds as an ISO-8601 UTC string.

    Only truthy numbers are formatted, so a missing value, ``None`` and ``0``
    all yield ``None``. Precision is truncated to milliseconds.

    Args:
        timestamp: Raw ``timestamp`` value from the downloader

    Returns:
        String such as ``2009-02-13T23:31:30.000Z`` or None

    Raises:
        ParseError: If the timestamp is outside the representable date range
    """
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return None
    if not timestamp:
        return None

    try:
        dt = EPOCH + timedelta(milliseconds=int(timestamp * 1000))
    except (OverflowError, ValueError) as e:
        raise ParseError(f"Timestamp {timestamp!r} is out of range") from e

    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def comment_to_record(comment: RawComment) -> NormalizedComment:
    """
    Convert a raw yt-dlp comment to a NormalizedComment.

    Args:
        comment: Comment mapping from the downloader's ``comments`` array

    Returns:
        A NormalizedComment with ``time`` derived from ``timestamp``
    """
    record: NormalizedComment = {}
    for key in PASSTHROUGH_BEFORE_TIME:
        if key in comment:
            record[key] = comment[key]

    record["time"] = format_timestamp(comment.get("timestamp"))

    for key in PASSTHROUGH_AFTER_TIME:
        if key in comment:
            record[key] = comment[key]

    return record


def comments_to_records(comments: List[RawComment]) -> List[NormalizedComment]:
    """Convert raw comments to NormalizedComments, preserving their order."""
    records = []
    for index, comment in enumerate(comments):
        if not isinstance(comment, dict):
            raise ParseError(f"Comment at index {index} is not an object")
        records.append(comment_to_record(comment))
    return records


def parse_payload(json_text: str) -> Any:
    """
    Parse the downloader's standard output.

    Any JSON value other than ``null`` is accepted. Values that are not
    objects carry no comments and produce the no-comments envelope later.

    Args:
        json_text: Captured output, normally one JSON object

    Returns:
        The decoded JSON value

    Raises:
        ParseError: If the text is not valid JSON or is ``null``
    """
    try:
        payload = json.loads(json_text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(f"Invalid JSON from downloader: {e}") from e

    if payload is None:
        raise ParseError("Downloader output is JSON null")
    return payload


def extract_comments(payload: Any) -> Optional[List[RawComment]]:
    """Return the payload's comment array, or None when it has none."""
    if not isinstance(payload, dict):
        return None
    comments = payload.get("comments")
    if isinstance(comments, list):
        return comments
    return None


def build_envelope(payload: Any) -> Envelope:
    """
    Build the result envelope for a decoded downloader payload.

    Args:
        payload: Decoded yt-dlp JSON document (any non-null JSON value)

    Returns:
        The comments envelope, or the no-comments envelope when the payload
        carries no ``comments`` array
    """
    raw_comments = extract_comments(payload)
    if raw_comments is None:
        logger.info("No comments array in downloader output")
        return {"comments": [], "message": NO_COMMENTS_MESSAGE}

    records = comments_to_records(raw_comments)

    envelope: CommentsEnvelope = {"comments": records}
    if "id" in payload:
        envelope["video_id"] = payload["id"]
    if "title" in payload:
        envelope["video_title"] = payload["title"]
    envelope["comment_count"] = len(records)

    logger.info(f"Normalized {len(records)} comments for video {payload.get('id')}")
    return envelope


def dump_envelope(envelope: Envelope, indent: Optional[int] = None) -> str:
    """
    Serialize an envelope compactly, or indented when ``indent`` is given.

    Non-ASCII text is kept as is. Lone surrogates, which cannot be encoded
    as UTF-8, are written as ``\\uXXXX`` escapes so the result can always be
    written to a UTF-8 file.
    """
    if indent is not None:
        text = json.dumps(envelope, ensure_ascii=False, indent=indent)
    else:
        text = json.dumps(envelope, ensure_ascii=False, separators=(",", ":"))
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


def normalize(json_text: str) -> str:
    """
    Reshape the downloader's JSON dump into the envelope JSON text.

    Args:
        json_text: Captured downloader output

    Returns:
        Compact JSON text of the result envelope

    Raises:
        ParseError: If the output cannot be decoded or holds an unusable
            comment
    """
    return dump_envelope(build_envelope(parse_payload(json_text)))
