"""Core business logic for dependency auditing and policy evaluation."""

from core.models import (
    PackageCoordinate,
    DependencyProject,
    Vulnerability,
    VulnerabilityRecord,
    VulnerableDependency,
    PolicyAction,
    PolicyResult,
)
from core.cache import ResultCache

__all__ = [
    "PackageCoordinate",
    "DependencyProject",
    "Vulnerability",
    "VulnerabilityRecord",
    "VulnerableDependency",
    "PolicyAction",
    "PolicyResult",
    "ResultCache",
]
