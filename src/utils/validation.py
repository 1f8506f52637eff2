"""
Input validation utilities for Sleuth.

Provides validation functions for server URLs, application ids, file paths
and numeric options so bad input fails before any remote call is made.
"""

import re
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from core.exceptions import ValidationException


def validate_server_url(url: str, field_name: str = "server") -> str:
    """
    Validate and normalize an HTTP(S) base URL.

    Args:
        url: URL to validate
        field_name: Field name for error messages

    Returns:
        URL without trailing slash

    Raises:
        ValidationException: If the URL is empty or not http/https

    Examples:
        >>> validate_server_url("http://localhost:8070/")
        'http://localhost:8070'
    """
    if not url or not url.strip():
        raise ValidationException("URL cannot be empty", field_name)

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationException(f"Invalid URL (expected http:// or https://): {url}", field_name)

    return url.rstrip("/")


def validate_application_id(application: str) -> str:
    """
    Validate an IQ Server public application id.

    Args:
        application: Public application id

    Returns:
        Stripped application id

    Raises:
        ValidationException: If the id is empty or contains invalid characters
    """
    if not application or not application.strip():
        raise ValidationException("Application id cannot be empty", "application")

    application = application.strip()

    # Public ids end up in a query string
    if not re.match(r"^[A-Za-z0-9._\-]+$", application):
        raise ValidationException(
            f"Application id contains invalid characters: {application}",
            "application"
        )

    return application


def validate_file_path(path: Path, must_exist: bool = True) -> Path:
    """
    Validate file path.

    Args:
        path: Path to validate
        must_exist: Whether file must already exist

    Returns:
        Validated Path object

    Raises:
        ValidationException: If path is invalid
    """
    if not path:
        raise ValidationException("File path cannot be empty", "path")

    if must_exist and not path.exists():
        raise ValidationException(f"File not found: {path}", "path")

    return path


def validate_positive_number(
    value: float,
    field_name: str,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
) -> float:
    """
    Validate numeric value is within acceptable range.

    Args:
        value: Value to validate
        field_name: Field name for error messages
        min_value: Minimum acceptable value
        max_value: Maximum acceptable value (optional)

    Returns:
        Validated value

    Raises:
        ValidationException: If value is out of range
    """
    if value < min_value:
        raise ValidationException(
            f"Value must be >= {min_value}, got {value}",
            field_name
        )

    if max_value is not None and value > max_value:
        raise ValidationException(
            f"Value must be <= {max_value}, got {value}",
            field_name
        )

    return value


def mask_username(username: Optional[str]) -> str:
    """
    Mask a username for log output, keeping its first and last character.

    Examples:
        >>> mask_username("someone@example.com")
        's***hidden***m'
    """
    if not username:
        return ""
    if len(username) < 3:
        return "***hidden***"
    return f"{username[0]}***hidden***{username[-1]}"
