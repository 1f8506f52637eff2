"""
Configuration dataclasses for OSS Index and IQ Server access.

Credentials can be stored in YAML files under the user's home directory;
values given on the command line take precedence over the files.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import yaml

from constants import (
    CACHE_DB_NAME,
    CACHE_DIR_NAME,
    DEFAULT_CACHE_TTL_HOURS,
    DEFAULT_IQ_SERVER,
    DEFAULT_IQ_STAGE,
    DEFAULT_IQ_TOKEN,
    DEFAULT_IQ_USERNAME,
    DEFAULT_MAX_RETRIES,
    IQ_SERVER_CONFIG_FILE_NAME,
    IQ_SERVER_DIR_NAME,
    OSS_INDEX_CONFIG_FILE_NAME,
    OSS_INDEX_DIR_NAME,
    OSS_INDEX_URL,
    POLL_INTERVAL_SECONDS,
)
from core.exceptions import ConfigurationException, ValidationException

logger = logging.getLogger(__name__)


def default_cache_dir(home: Optional[Path] = None) -> Path:
    """Cache directory under the user's home, e.g. ~/.ossindex/sleuth/sleuth-cache."""
    home = home or Path.home()
    return home / OSS_INDEX_DIR_NAME / CACHE_DIR_NAME / CACHE_DB_NAME


def oss_index_config_path(home: Optional[Path] = None) -> Path:
    """Location of the OSS Index credentials file."""
    return (home or Path.home()) / OSS_INDEX_DIR_NAME / OSS_INDEX_CONFIG_FILE_NAME


def iq_config_path(home: Optional[Path] = None) -> Path:
    """Location of the IQ Server credentials file."""
    return (home or Path.home()) / IQ_SERVER_DIR_NAME / IQ_SERVER_CONFIG_FILE_NAME


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    """
    Read a YAML file that must hold a mapping.

    Returns an empty dict when the file does not exist.

    Raises:
        ConfigurationException: If the file cannot be parsed or is not a mapping
    """
    if not path.exists():
        logger.debug(f"No configuration file at {path}")
        return {}

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationException(f"Failed to read configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationException(f"Configuration file {path} must contain a YAML mapping")

    logger.debug(f"Loaded configuration from {path}")
    return data


def _write_yaml_mapping(path: Path, data: dict[str, Any]) -> Path:
    """
    Write a mapping as YAML, creating the parent directory if needed.

    Raises:
        ConfigurationException: If the file cannot be written
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationException(f"Failed to write configuration file {path}: {e}") from e

    logger.debug(f"Wrote configuration to {path}")
    return path


@dataclass
class OSSIndexConfig:
    """Configuration for auditing against OSS Index."""

    username: Optional[str] = None
    token: Optional[str] = field(default=None, repr=False)
    url: str = OSS_INDEX_URL
    cache_dir: Path = field(default_factory=default_cache_dir)
    cache_ttl: timedelta = timedelta(hours=DEFAULT_CACHE_TTL_HOURS)

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValidationException: If configuration is invalid
        """
        from utils.validation import validate_positive_number, validate_server_url

        self.url = validate_server_url(self.url, "url")
        validate_positive_number(self.cache_ttl.total_seconds(), "cache_ttl", min_value=0.0)

        if bool(self.username) != bool(self.token):
            raise ValidationException("Username and token must be given together", "token")

    @classmethod
    def load(
        cls,
        username: Optional[str] = None,
        token: Optional[str] = None,
        path: Optional[Path] = None,
        **kwargs,
    ) -> "OSSIndexConfig":
        """
        Build configuration from the credentials file, overridden by explicit values.

        Args:
            username: OSS Index username (overrides the file)
            token: OSS Index token (overrides the file)
            path: Credentials file (defaults to ~/.ossindex/.oss-index-config)
            **kwargs: Remaining dataclass fields
        """
        data = _read_yaml_mapping(path or oss_index_config_path())
        return cls(
            username=username or data.get("Username") or None,
            token=token or data.get("Token") or None,
            **kwargs,
        )

    def save(self, path: Optional[Path] = None) -> Path:
        """
        Write the credentials to the credentials file.

        Args:
            path: Credentials file (defaults to ~/.ossindex/.oss-index-config)

        Returns:
            Path written
        """
        return _write_yaml_mapping(
            path or oss_index_config_path(),
            {"Username": self.username or "", "Token": self.token or ""},
        )


@dataclass
class IQConfig:
    """Configuration for policy evaluation against Nexus IQ Server."""

    application: str = ""
    server: str = DEFAULT_IQ_SERVER
    username: str = DEFAULT_IQ_USERNAME
    token: str = field(default=DEFAULT_IQ_TOKEN, repr=False)
    stage: str = DEFAULT_IQ_STAGE
    max_retries: int = DEFAULT_MAX_RETRIES
    poll_interval: float = POLL_INTERVAL_SECONDS

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValidationException: If configuration is invalid
        """
        from utils.validation import (
            validate_application_id,
            validate_positive_number,
            validate_server_url,
        )

        self.application = validate_application_id(self.application)
        self.server = validate_server_url(self.server, "server")
        validate_positive_number(self.max_retries, "max_retries", min_value=0)
        validate_positive_number(self.poll_interval, "poll_interval", min_value=0.0, max_value=60.0)

    @classmethod
    def load(
        cls,
        application: str,
        server: Optional[str] = None,
        username: Optional[str] = None,
        token: Optional[str] = None,
        path: Optional[Path] = None,
        **kwargs,
    ) -> "IQConfig":
        """
        Build configuration from the credentials file, overridden by explicit values.

        Args:
            application: Public application id
            server: IQ Server base URL (overrides the file)
            username: IQ Server user (overrides the file)
            token: IQ Server token (overrides the file)
            path: Credentials file (defaults to ~/.iqserver/.iq-server-config)
            **kwargs: Remaining dataclass fields
        """
        data = _read_yaml_mapping(path or iq_config_path())
        return cls(
            application=application,
            server=server or data.get("Server") or DEFAULT_IQ_SERVER,
            username=username or data.get("Username") or DEFAULT_IQ_USERNAME,
            token=token or data.get("Token") or DEFAULT_IQ_TOKEN,
            **kwargs,
        )

    @property
    def uses_default_credentials(self) -> bool:
        """True when either the shipped IQ Server username or token is in use."""
        return self.username == DEFAULT_IQ_USERNAME or self.token == DEFAULT_IQ_TOKEN

    def save(self, path: Optional[Path] = None) -> Path:
        """
        Write server and credentials to the credentials file.

        Args:
            path: Credentials file (defaults to ~/.iqserver/.iq-server-config)

        Returns:
            Path written
        """
        return _write_yaml_mapping(
            path or iq_config_path(),
            {"Server": self.server, "Username": self.username, "Token": self.token},
        )


__all__ = [
    "OSSIndexConfig",
    "IQConfig",
    "default_cache_dir",
    "oss_index_config_path",
    "iq_config_path",
]
