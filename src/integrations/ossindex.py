"""
Sonatype OSS Index component-report client.

Issues a single component-report request and maps its outcome onto the
audit error taxonomy. Chunking and caching live in core.auditor.
"""

import logging
from typing import Optional

import requests

from constants import API_REQUEST_TIMEOUT, OSS_INDEX_URL
from core.exceptions import RateLimited, RemoteAuditFailed, TransportError
from core.models import VulnerabilityRecord
from utils.useragent import get_user_agent

logger = logging.getLogger(__name__)

SERVICE_NAME = "OSS Index"


class OSSIndexClient:
    """
    Client for OSS Index's component-report endpoint.

    Performs no retries; rate limiting surfaces as RateLimited so the
    caller can decide how to back off.
    """

    def __init__(
        self,
        username: Optional[str] = None,
        token: Optional[str] = None,
        url: str = OSS_INDEX_URL,
        session: Optional[requests.Session] = None,
        user_agent: Optional[str] = None,
        timeout: float = API_REQUEST_TIMEOUT,
    ):
        """
        Initialize OSS Index client.

        Args:
            username: OSS Index username (email address)
            token: OSS Index API token
            url: Component-report endpoint
            session: HTTP session (a new one is created if omitted)
            user_agent: User-Agent header value
            timeout: Request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "User-Agent": user_agent or get_user_agent(),
            "Content-Type": "application/json",
        }
        self.auth = None
        if username and token:
            logger.info("Using OSS Index basic auth")
            self.auth = (username, token)

    def component_report(self, coordinates: list[str]) -> list[VulnerabilityRecord]:
        """
        Fetch audit results for a batch of coordinates.

        Args:
            coordinates: Package URLs (at most MAX_COORDINATES_PER_REQUEST)

        Returns:
            One record per coordinate OSS Index knows about

        Raises:
            RateLimited: OSS Index answered 429
            RemoteAuditFailed: Any other non-200 answer, or an unreadable body
            TransportError: The request did not complete
        """
        logger.debug(f"Requesting component report for {len(coordinates)} coordinates")

        try:
            response = self.session.post(
                self.url,
                json={"coordinates": coordinates},
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.error(f"Timeout contacting {SERVICE_NAME}")
            raise TransportError(SERVICE_NAME, f"timeout: {e}") from e
        except requests.RequestException as e:
            logger.error(f"Failed to contact {SERVICE_NAME}: {e}")
            raise TransportError(SERVICE_NAME, str(e)) from e

        if response.status_code == 429:
            logger.error("Error accessing OSS Index due to rate limiting")
            raise RateLimited()

        if response.status_code != 200:
            logger.error(f"Error accessing OSS Index: {response.status_code}")
            raise RemoteAuditFailed(response.status_code, getattr(response, "reason", "") or "")

        try:
            data = response.json()
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            records = [VulnerabilityRecord.from_dict(entry) for entry in data]
        except ValueError as e:
            logger.error(f"Error unmarshalling response from OSS Index: {e}")
            raise RemoteAuditFailed(response.status_code, f"invalid response body: {e}") from e

        logger.debug(f"Received {len(records)} results from OSS Index")
        return records
