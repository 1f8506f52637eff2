"""
Vulnerability exclusion lists.

Exclusions come from the command line (comma separated) and from an ignore
file with one CVE or OSS Index id per line. A line may carry an expiry:

    CVE-2018-1000001 until=2030-01-01   # waiting on upstream fix
"""

import logging
import re
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from core.exceptions import ValidationException

logger = logging.getLogger(__name__)

_COMMENT_PATTERN = re.compile(r"#.*$")
_UNTIL_PATTERN = re.compile(r"until=(\S*)")


def parse_exclusion_list(value: Optional[str]) -> list[str]:
    """
    Split a comma separated exclusion list.

    Examples:
        >>> parse_exclusion_list("CVE-1, CVE-2,,")
        ['CVE-1', 'CVE-2']
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_exclusion_line(line: str, today: date) -> Optional[str]:
    """
    Parse one ignore file line.

    Args:
        line: Raw line
        today: Date against which "until" expiries are checked

    Returns:
        The exclusion, or None for blank, comment-only and expired lines

    Raises:
        ValidationException: If the "until" date is malformed
    """
    content = _COMMENT_PATTERN.sub("", line)
    until = _UNTIL_PATTERN.search(content)
    exclusion = _UNTIL_PATTERN.sub("", content).strip()

    if not exclusion:
        return None

    if until:
        try:
            expiry = date.fromisoformat(until.group(1).strip())
        except ValueError:
            raise ValidationException(
                f"failed to parse until at line '{line.rstrip()}'. Expected format is 'until=yyyy-MM-dd'",
                "exclude_file",
            )
        if expiry <= today:
            logger.debug(f"Exclusion {exclusion} expired on {expiry}")
            return None

    return exclusion


def load_exclusion_file(path: Path, today: Optional[date] = None) -> list[str]:
    """
    Read exclusions from an ignore file.

    A missing file (or a directory) yields no exclusions.

    Raises:
        ValidationException: If a line carries a malformed "until" date
    """
    if not path.is_file():
        logger.debug(f"No exclusion file at {path}")
        return []

    today = today or date.today()
    exclusions = []
    with open(path, "r") as f:
        for line in f:
            exclusion = parse_exclusion_line(line, today)
            if exclusion:
                exclusions.append(exclusion)

    logger.debug(f"Loaded {len(exclusions)} exclusions from {path}")
    return exclusions


def collect_exclusions(
    cli_value: Optional[str] = None,
    exclude_file: Optional[Path] = None,
    today: Optional[date] = None,
) -> list[str]:
    """Merge command line and file exclusions, keeping first-seen order."""
    exclusions: Iterable[str] = parse_exclusion_list(cli_value)
    if exclude_file is not None:
        exclusions = [*exclusions, *load_exclusion_file(exclude_file, today)]
    return list(dict.fromkeys(exclusions))
