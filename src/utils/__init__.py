"""Utility modules for manifest reading, exclusions and request metadata."""

from utils.logging_helpers import log_error_section, log_warning_section, log_info_header

__all__ = [
    "log_error_section",
    "log_warning_section",
    "log_info_header",
]
