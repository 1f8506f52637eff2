"""
Batched vulnerability auditing with a local result cache.

Splits the requested coordinates into cache hits and misses, asks OSS Index
about the misses in bounded chunks (one request at a time), caches what comes
back and returns the union.
"""

import logging
from typing import Iterable, Iterator

from constants import MAX_COORDINATES_PER_REQUEST
from core.cache import ResultCache
from core.models import VulnerabilityRecord
from integrations.ossindex import OSSIndexClient

logger = logging.getLogger(__name__)


def chunk(items: list[str], size: int) -> Iterator[list[str]]:
    """
    Split a list into consecutive chunks of at most size items.

    Examples:
        >>> [len(c) for c in chunk(list("abcdefg"), 3)]
        [3, 3, 1]
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchAuditor:
    """
    Audits coordinates against OSS Index through a ResultCache.

    A failure in any chunk aborts the whole audit; results of earlier chunks
    stay cached but are not returned.
    """

    def __init__(
        self,
        client: OSSIndexClient,
        cache: ResultCache,
        chunk_size: int = MAX_COORDINATES_PER_REQUEST,
    ):
        """
        Initialize batch auditor.

        Args:
            client: OSS Index client issuing the remote requests
            cache: Result cache consulted before any request
            chunk_size: Maximum coordinates per request
        """
        self.client = client
        self.cache = cache
        self.chunk_size = chunk_size
        self.requests_made = 0

    def audit(self, coordinates: Iterable[str]) -> list[VulnerabilityRecord]:
        """
        Audit coordinates, using cached results where still valid.

        Args:
            coordinates: Canonical coordinate strings

        Returns:
            Records for cached and newly fetched coordinates, in no particular order

        Raises:
            RateLimited, RemoteAuditFailed, TransportError: from the first failing chunk
        """
        coordinates = list(coordinates)
        if not coordinates:
            return []

        with self.cache.connection():
            missing, results = self.cache.get(coordinates)
            logger.info(
                f"{len(results)} of {len(coordinates)} coordinates found in cache, "
                f"{len(missing)} to request from OSS Index"
            )

            for batch in chunk(missing, self.chunk_size):
                logger.info(f"Prepping request to OSS Index for {len(batch)} coordinates")
                records = self.client.component_report(batch)
                self.requests_made += 1

                self.cache.put(records)
                results.extend(records)

        return results
