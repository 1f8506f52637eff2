"""
Exception hierarchy for Sleuth.

Provides a standardized exception hierarchy for consistent error handling
across the application. All exceptions inherit from SleuthException.
Components raise these; only the command line maps them to exit codes.
"""

from typing import Optional


class SleuthException(Exception):
    """Base exception for all Sleuth errors."""
    pass


class TransportError(SleuthException):
    """Network-level failure (connection refused, timeout, ...)."""

    def __init__(self, service: str, reason: str):
        """
        Initialize transport error.

        Args:
            service: Service that could not be reached
            reason: Underlying failure
        """
        self.service = service
        self.reason = reason
        super().__init__(f"Could not communicate with {service}: {reason}")


class RateLimited(SleuthException):
    """OSS Index answered with HTTP 429."""

    def __init__(self):
        super().__init__(
            "You have been rate limited by OSS Index. "
            "Register at https://ossindex.sonatype.org/user/register, retrieve your "
            "username and API token from https://ossindex.sonatype.org/user/settings "
            "and pass them with --username and --token."
        )


class RemoteAuditFailed(SleuthException):
    """OSS Index answered with a non-success status."""

    def __init__(self, status: int, reason: str = ""):
        """
        Initialize remote audit failure.

        Args:
            status: HTTP status code
            reason: HTTP reason phrase or body excerpt
        """
        self.status = status
        self.reason = reason
        message = f"[{status}] error accessing OSS Index"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ApplicationNotFound(SleuthException):
    """IQ Server has no application for the given public ID."""

    def __init__(self, public_id: str):
        self.public_id = public_id
        super().__init__(
            f"Unable to retrieve an internal ID for the specified public application ID: {public_id}"
        )


class PolicyServiceError(SleuthException):
    """IQ Server answered with an unexpected status."""

    def __init__(self, status: int, endpoint: str):
        self.status = status
        self.endpoint = endpoint
        super().__init__(
            f"Unable to communicate with Nexus IQ Server ({endpoint}), status code returned is: {status}"
        )


class SubmissionRejected(SleuthException):
    """IQ Server did not accept the submitted bill of materials."""

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(
            f"Nexus IQ Server did not accept the bill of materials (status {status})"
        )


class PollTimeout(SleuthException):
    """Policy evaluation did not finish within the retry budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Policy evaluation not finished after {attempts} attempts, "
            "consider raising --max-retries"
        )


class PollCancelled(SleuthException):
    """Policy polling was cancelled or ran past its deadline."""
    pass


class CacheCorrupt(SleuthException):
    """A cache entry could not be read back. Never leaves the cache."""
    pass


class ValidationException(SleuthException):
    """Input validation failed."""

    def __init__(self, message: str, field: Optional[str] = None):
        """
        Initialize validation exception.

        Args:
            message: Validation error message
            field: Field that failed validation (optional)
        """
        self.field = field
        if field:
            super().__init__(f"Validation failed for {field}: {message}")
        else:
            super().__init__(f"Validation failed: {message}")


class ConfigurationException(SleuthException):
    """Configuration is invalid or missing."""
    pass


__all__ = [
    "SleuthException",
    "TransportError",
    "RateLimited",
    "RemoteAuditFailed",
    "ApplicationNotFound",
    "PolicyServiceError",
    "SubmissionRejected",
    "PollTimeout",
    "PollCancelled",
    "CacheCorrupt",
    "ValidationException",
    "ConfigurationException",
]
