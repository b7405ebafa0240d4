"""Async invocation of the external downloader binary."""

import asyncio
import logging
from typing import List, Optional, Sequence

from ytdlp_comments.exceptions import ProcessError

logger = logging.getLogger(__name__)

COMMENT_DUMP_ARGS = (
    "--skip-download",
    "--write-comments",
    "--dump-single-json",
)


def build_comment_args(url: str) -> List[str]:
    """Argument list asking the downloader for a single JSON dump with comments."""
    return [*COMMENT_DUMP_ARGS, url]


async def run_process(
    binary: str,
    args: Sequence[str],
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
) -> str:
    """
    Run a binary without a shell and return its standard output.

    Args:
        binary: Executable name or path
        args: Arguments passed verbatim, one argv entry each
        cwd: Working directory for the child process
        timeout: Seconds to wait before killing the process (None waits forever)

    Returns:
        Captured standard output decoded as UTF-8

    Raises:
        ProcessError: If the process cannot be started, times out or exits non-zero
    """
    logger.debug(f"Launching {binary} with {len(args)} arguments")
    try:
        proc = await asyncio.create_subprocess_exec(
            binary,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        logger.error(f"Failed to start {binary}: {e}")
        raise ProcessError(f"Failed to start {binary}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(proc)
        logger.error(f"{binary} timed out after {timeout} seconds")
        raise ProcessError(f"{binary} timed out after {timeout} seconds")
    except BaseException:
        # Cancelled by the caller: do not leave the child running
        await _kill(proc)
        raise

    stderr_text = stderr.decode("utf-8", errors="replace").strip()
    if proc.returncode != 0:
        message = stderr_text or f"{binary} exited with code {proc.returncode}"
        logger.error(f"{binary} exited with code {proc.returncode}: {message}")
        raise ProcessError(message, returncode=proc.returncode, stderr=stderr_text)

    logger.debug(f"{binary} finished, captured {len(stdout)} bytes of output")
    return stdout.decode("utf-8", errors="replace")


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()
