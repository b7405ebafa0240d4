"""Temporary scratch directory lifecycle for downloader runs."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


def acquire(prefix: str) -> str:
    """
    Create a uniquely named directory under the system temporary root.

    Args:
        prefix: Prefix for the directory name

    Returns:
        Absolute path of the new directory
    """
    path = tempfile.mkdtemp(prefix=prefix)
    logger.debug(f"Created scratch directory {path}")
    return path


def release(path: str) -> None:
    """Remove a scratch directory recursively; a missing directory is not an error."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        logger.debug(f"Scratch directory {path} was already removed")
        return
    logger.debug(f"Removed scratch directory {path}")


@contextmanager
def scratch_dir(prefix: str) -> Iterator[str]:
    """
    Provide a scratch directory that is released exactly once on exit.

    Args:
        prefix: Prefix for the directory name

    Yields:
        Path of the scratch directory
    """
    path = acquire(prefix)
    try:
        yield path
    finally:
        release(path)
