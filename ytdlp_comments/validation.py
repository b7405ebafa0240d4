"""URL allow-list validation."""

import logging
from fnmatch import fnmatch
from typing import Iterable, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def host_matches(host: str, pattern: str) -> bool:
    """
    Check a host name against a single allow-list entry.

    A plain entry such as ``youtube.com`` matches the host itself and every
    subdomain of it; an entry containing ``*`` is matched as a shell wildcard.
    """
    pattern = pattern.strip().lower()
    if not pattern:
        return False
    if "*" in pattern:
        return fnmatch(host, pattern)
    return host == pattern or host.endswith("." + pattern)


def validate_url(url: str, allowed_hosts: Optional[Iterable[str]] = None) -> bool:
    """
    Check whether a URL can be handed to the downloader.

    Args:
        url: Candidate URL
        allowed_hosts: Host allow-list; empty or None accepts any host

    Returns:
        True if the URL is a well-formed http(s) URL on an allowed host
    """
    if not isinstance(url, str) or not url.strip():
        return False

    # Raw whitespace is never part of a valid URL
    if any(ch.isspace() for ch in url):
        return False

    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme.lower() not in ALLOWED_SCHEMES or not host:
        return False

    hosts = list(allowed_hosts or [])
    if not hosts:
        return True

    allowed = any(host_matches(host, pattern) for pattern in hosts)
    if not allowed:
        logger.debug(f"Host {host} is not in the allow-list")
    return allowed
