"""Report formatters for audit results."""

from outputs.base import ReportFormatter
from outputs.json_formatter import JSONFormatter
from outputs.text_formatter import TextFormatter

FORMATTERS = {
    "text": TextFormatter,
    "json": JSONFormatter,
}

__all__ = [
    "ReportFormatter",
    "TextFormatter",
    "JSONFormatter",
    "FORMATTERS",
]
