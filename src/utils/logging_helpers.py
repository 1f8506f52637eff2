"""
Logging helper utilities for the sleuth CLI.

Multi-line operator messages (rate limiting advice, credential warnings,
stage headers) are framed by separator lines so they stand out in CI logs.
"""

import logging
from typing import List, Optional


def _log_section(
    level: int,
    title: str,
    messages: List[str],
    logger: Optional[logging.Logger],
    width: int,
) -> None:
    logger = logger or logging.getLogger()
    separator = "=" * width

    logger.log(level, separator)
    logger.log(level, title)
    for message in messages:
        # Empty strings are kept as blank lines
        logger.log(level, message or "")
    logger.log(level, separator)


def log_error_section(
    title: str,
    messages: List[str],
    logger: Optional[logging.Logger] = None,
    width: int = 60
) -> None:
    """
    Log an error section with separator lines and multiple messages.

    Args:
        title: Title message for the error section
        messages: List of error messages to display
        logger: Logger instance (defaults to root logger if not provided)
        width: Width of separator line in characters

    Examples:
        >>> log_error_section(
        ...     "Rate Limited",
        ...     ["OSS Index answered 429", "Pass --username and --token"]
        ... )
        ============================================================
        Rate Limited
        OSS Index answered 429
        Pass --username and --token
        ============================================================
    """
    _log_section(logging.ERROR, title, messages, logger, width)


def log_warning_section(
    title: str,
    messages: List[str],
    logger: Optional[logging.Logger] = None,
    width: int = 60
) -> None:
    """
    Log a warning section with separator lines and multiple messages.

    Args:
        title: Title message for the warning section
        messages: List of warning messages to display
        logger: Logger instance (defaults to root logger if not provided)
        width: Width of separator line in characters
    """
    _log_section(logging.WARNING, title, messages, logger, width)


def log_info_header(
    message: str,
    logger: Optional[logging.Logger] = None,
    width: int = 60,
    char: str = "="
) -> None:
    """
    Log an informational header with separator lines.

    Examples:
        >>> log_info_header("Auditing 42 dependencies")
        ============================================================
        Auditing 42 dependencies
        ============================================================
    """
    logger = logger or logging.getLogger()
    logger.info(char * width)
    logger.info(message)
    logger.info(char * width)
