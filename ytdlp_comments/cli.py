"""Command-line interface for the yt-dlp comment downloader."""

import asyncio
import json
import logging
import logging.config
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from typing_extensions import Annotated

from ytdlp_comments.collector.batch import BatchDownloader, BatchResult, read_url_file
from ytdlp_comments.collector.downloader import CommentDownloader, download_comments
from ytdlp_comments.collector.error_handler import ConsecutiveErrorTracker
from ytdlp_comments.config import Config
from ytdlp_comments.exceptions import DownloadError, ValidationError
from ytdlp_comments.models.mapping import dump_envelope
from ytdlp_comments.monitoring.metrics import PrometheusExporter
from ytdlp_comments.validation import validate_url

app = typer.Typer(help="yt-dlp comment downloader - fetch and normalize video comments")

logger = logging.getLogger(__name__)


LOG_FILE = Path("logs") / "ytdlp_comments.log"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Route log records to stderr and to a rotating file under ``logs/``.

    stdout is reserved for the comment JSON and the batch summary, so
    nothing is logged there.

    Args:
        log_level: Threshold for both handlers, e.g. ``WARNING`` for downloads
    """
    LOG_FILE.parent.mkdir(exist_ok=True)

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": str(LOG_FILE),
                "maxBytes": 5 * 1024 * 1024,
                "backupCount": 3,
                "encoding": "utf8",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console", "file"],
                "level": log_level,
                "propagate": True
            },
            "asyncio": {
                "level": "WARNING",
            },
        }
    }

    logging.config.dictConfig(log_config)


def load_config(config_path: str) -> Config:
    """Load and validate configuration, exiting with code 1 if it is invalid."""
    config = Config.from_files(config_path)
    validation_errors = config.validate()

    if validation_errors:
        for error in validation_errors:
            logger.error(f"Configuration error: {error}")
            typer.echo(f"Configuration error: {error}", err=True)
        raise typer.Exit(code=1)

    return config


def summarize_batch(results: List[BatchResult]) -> Dict[str, Any]:
    succeeded = sum(1 for r in results if r.ok)
    skipped = sum(1 for r in results if r.skipped)
    return {
        "total": len(results),
        "succeeded": succeeded,
        "failed": len(results) - succeeded - skipped,
        "skipped": skipped,
        "results": [
            {
                "url": r.url,
                "ok": r.ok,
                "error": r.error,
                "output_path": r.output_path,
            }
            for r in results
        ],
    }


@app.command()
def download(
    url: Annotated[str, typer.Argument(help="Video URL")],
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Write the JSON to this file instead of stdout")] = None,
    pretty: Annotated[bool, typer.Option("--pretty", "-p", help="Indent the JSON output")] = False,
    timeout: Annotated[Optional[float], typer.Option("--timeout", "-t", help="Kill yt-dlp after this many seconds")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "WARNING",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """
    Download the comments of one video and print them as JSON.
    """
    setup_logging("DEBUG" if verbose else loglevel)

    app_config = load_config(config)
    if timeout is not None:
        if timeout <= 0:
            typer.echo("--timeout must be greater than 0", err=True)
            raise typer.Exit(code=1)
        app_config.downloader.timeout_sec = timeout

    try:
        result = asyncio.run(download_comments(url, app_config))
    except ValidationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=2)
    except DownloadError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        raise typer.Exit(code=130)

    if pretty:
        result = dump_envelope(json.loads(result), indent=2)

    if output:
        try:
            Path(output).write_text(result, encoding="utf-8")
        except OSError as e:
            typer.echo(f"Cannot write {output}: {e}", err=True)
            raise typer.Exit(code=1)
        logger.info(f"Comments written to {output}")
    else:
        typer.echo(result)


@app.command()
def validate(
    url: Annotated[str, typer.Argument(help="Video URL")],
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
) -> None:
    """
    Check whether a URL would be accepted for download.
    """
    app_config = load_config(config)
    if validate_url(url, app_config.url.allowed_hosts):
        typer.echo("valid")
    else:
        typer.echo("invalid")
        raise typer.Exit(code=1)


@app.command()
def batch(
    urls_file: Annotated[str, typer.Argument(help="Text file with one URL per line")],
    config: Annotated[str, typer.Option("--config", "-c", help="Path to configuration file")] = "config.yaml",
    output_dir: Annotated[Optional[str], typer.Option("--output-dir", "-o", help="Directory for per-video JSON files")] = None,
    concurrency: Annotated[Optional[int], typer.Option("--concurrency", "-n", help="Parallel downloads (overrides config)")] = None,
    loglevel: Annotated[str, typer.Option("--loglevel", "-l", help="Logging level")] = "INFO",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable verbose output")] = False,
) -> None:
    """
    Download comments for every URL in a file and print a JSON summary.
    """
    setup_logging("DEBUG" if verbose else loglevel)

    app_config = load_config(config)
    if concurrency is not None:
        if concurrency <= 0:
            typer.echo("--concurrency must be greater than 0", err=True)
            raise typer.Exit(code=1)
        app_config.batch.concurrency = concurrency
    if output_dir is not None:
        app_config.batch.output_dir = output_dir

    try:
        urls = read_url_file(urls_file)
    except OSError as e:
        typer.echo(f"Cannot read {urls_file}: {e}", err=True)
        raise typer.Exit(code=1)

    prometheus_exporter = None
    if app_config.monitoring.enable_prometheus:
        prometheus_exporter = PrometheusExporter(port=app_config.monitoring.prometheus_port)
        prometheus_exporter.start_server()

    downloader = CommentDownloader(app_config, prometheus_exporter)
    error_tracker = ConsecutiveErrorTracker(app_config.failure_threshold, prometheus_exporter)
    runner = BatchDownloader(
        downloader,
        error_tracker,
        concurrency=app_config.batch.concurrency,
        output_dir=app_config.batch.output_dir,
    )

    try:
        results = asyncio.run(runner.run(urls))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        raise typer.Exit(code=130)

    summary = summarize_batch(results)
    typer.echo(json.dumps(summary, indent=2, ensure_ascii=False))

    if summary["succeeded"] != summary["total"]:
        raise typer.Exit(code=1)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
