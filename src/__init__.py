"""
Sleuth - Go Dependency Vulnerability Auditor

Audit Go module dependencies against Sonatype OSS Index and, optionally,
evaluate them against Nexus IQ Server policy.
"""

__version__ = "1.0.0"
__author__ = "Sleuth Contributors"

from core.models import (
    PackageCoordinate,
    Vulnerability,
    VulnerabilityRecord,
    PolicyResult,
)

__all__ = [
    "PackageCoordinate",
    "Vulnerability",
    "VulnerabilityRecord",
    "PolicyResult",
]
