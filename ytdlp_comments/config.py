"""Configuration handling for the yt-dlp comment downloader."""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv


DEFAULT_ALLOWED_HOSTS = [
    "youtube.com",
    "youtu.be",
    "youtube-nocookie.com",
]


@dataclass
class FileConfig:
    """Scratch directory configuration."""

    temp_dir_prefix: str = "ytdlp-"


@dataclass
class DownloaderConfig:
    """External downloader configuration."""

    binary: str = "yt-dlp"
    timeout_sec: Optional[float] = None  # None waits for the process indefinitely


@dataclass
class UrlConfig:
    """URL allow-list configuration."""

    allowed_hosts: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_HOSTS))


@dataclass
class BatchConfig:
    """Batch download configuration."""

    concurrency: int = 4
    output_dir: Optional[str] = None


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


def _merge_section(section: Any, values: Any) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    if not isinstance(values, dict):
        return
    known = {f.name for f in fields(section)}
    for key, value in values.items():
        if key in known:
            setattr(section, key, value)


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    file: FileConfig = field(default_factory=FileConfig)
    downloader: DownloaderConfig = field(default_factory=DownloaderConfig)
    url: UrlConfig = field(default_factory=UrlConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    failure_threshold: int = 5

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Config":
        """
        Build a configuration from a plain mapping, ignoring unknown keys.

        Args:
            data: Mapping shaped like the YAML configuration file

        Returns:
            Config instance with the mapping merged over defaults
        """
        config = cls()
        if not data:
            return config

        _merge_section(config.file, data.get("file"))
        _merge_section(config.downloader, data.get("downloader"))
        _merge_section(config.url, data.get("url"))
        _merge_section(config.batch, data.get("batch"))
        _merge_section(config.monitoring, data.get("monitoring"))

        if "failure_threshold" in data:
            config.failure_threshold = data["failure_threshold"]

        return config

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from YAML file and environment variables.

        Args:
            config_path: Path to YAML configuration file (missing file means defaults)
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        yaml_config = None
        if config_path and os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file)

        config = cls.from_dict(yaml_config)

        # Environment variables win over the YAML file
        prefix = os.getenv("YTDLP_TEMP_DIR_PREFIX")
        if prefix is not None:
            config.file.temp_dir_prefix = prefix

        binary = os.getenv("YTDLP_BINARY")
        if binary:
            config.downloader.binary = binary

        timeout = os.getenv("YTDLP_TIMEOUT_SEC")
        if timeout:
            config.downloader.timeout_sec = float(timeout)

        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        prefix = self.file.temp_dir_prefix
        if not prefix:
            errors.append("file.temp_dir_prefix must not be empty")
        elif os.sep in prefix or (os.altsep and os.altsep in prefix):
            errors.append("file.temp_dir_prefix must not contain a path separator")

        if not self.downloader.binary:
            errors.append("downloader.binary must not be empty")

        timeout = self.downloader.timeout_sec
        if timeout is not None and timeout <= 0:
            errors.append("downloader.timeout_sec must be greater than 0")

        if not isinstance(self.url.allowed_hosts, list):
            errors.append("url.allowed_hosts must be a list of host names")

        if self.batch.concurrency <= 0:
            errors.append("batch.concurrency must be greater than 0")

        if self.failure_threshold <= 0:
            errors.append("failure_threshold must be greater than 0")

        port = self.monitoring.prometheus_port
        if not 0 < port < 65536:
            errors.append("monitoring.prometheus_port must be between 1 and 65535")

        return errors
