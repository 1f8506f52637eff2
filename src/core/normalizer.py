"""
Package identifier normalization.

Turns raw package URLs, or dependencies read from a manifest, into canonical
coordinates: version prefixes and build metadata are stripped, duplicates
removed (first occurrence wins) and unusable versions set aside.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from core.models import (
    DependencyProject,
    PackageCoordinate,
    VulnerabilityRecord,
    is_semver,
)

logger = logging.getLogger(__name__)

GOLANG_ECOSYSTEM = "golang"

_GITHUB_PATTERN = re.compile(r"^github\.com/([^/]+)/([^/]+).*")
_GOPKG2_PATTERN = re.compile(r"^gopkg\.in/([^/]+)/([^.]+).*")
_GOPKG1_PATTERN = re.compile(r"^gopkg\.in/([^.]+).*")


@dataclass
class NormalizationResult:
    """
    Outcome of normalizing a list of identifiers.

    Attributes:
        coordinates: Deduplicated, auditable coordinates in first-seen order
        invalid: Identifiers whose version is not a semantic version
        dropped: Identifiers skipped because they carry no version at all
        total: Number of identifiers given
    """

    coordinates: list[PackageCoordinate] = field(default_factory=list)
    invalid: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    total: int = 0

    @property
    def purls(self) -> list[str]:
        """Canonical strings of the auditable coordinates."""
        return [c.purl for c in self.coordinates]

    @property
    def usable_count(self) -> int:
        """Number of coordinates that will be audited."""
        return len(self.coordinates)

    def invalid_records(self) -> list[VulnerabilityRecord]:
        """Invalid identifiers as records flagged for reporting."""
        return [VulnerabilityRecord(coordinates=p, invalid_semver=True) for p in self.invalid]


def normalize_version(version: str) -> str:
    """
    Strip a leading "v" and any build metadata from a version string.

    Examples:
        >>> normalize_version("v1.2.3")
        '1.2.3'
        >>> normalize_version("v2.0.0+incompatible")
        '2.0.0'
        >>> normalize_version("  ")
        ''
    """
    version = (version or "").strip()
    if version[:1] in ("v", "V"):
        version = version[1:]
    return version.split("+", 1)[0]


def go_module_to_purl_path(name: str) -> str:
    """
    Convert a Go module path into the "type/namespace/name" part of a purl.

    Examples:
        >>> go_module_to_purl_path("github.com/pkg/errors")
        'golang/pkg/errors'
        >>> go_module_to_purl_path("gopkg.in/yaml.v2")
        'golang/go-yaml/yaml'
        >>> go_module_to_purl_path("golang.org/x/text")
        'golang/golang.org/x/text'
    """
    if _GITHUB_PATTERN.match(name):
        return _GITHUB_PATTERN.sub(r"golang/\1/\2", name)
    if _GOPKG2_PATTERN.match(name):
        return _GOPKG2_PATTERN.sub(r"golang/\1/\2", name)
    if _GOPKG1_PATTERN.match(name):
        return _GOPKG1_PATTERN.sub(r"golang/go-\1/\1", name)
    return f"{GOLANG_ECOSYSTEM}/{name}"


def purl_for_project(name: str, version: str) -> str:
    """Build a (not yet normalized) purl for a Go module and version."""
    return f"pkg:{go_module_to_purl_path(name)}@{version}"


def canonical_coordinate(raw: str) -> Optional[PackageCoordinate]:
    """
    Parse a package URL and normalize its version.

    Returns None when the identifier cannot be parsed or has no version. The
    returned version may still be non-semantic.

    Examples:
        >>> canonical_coordinate("pkg:golang/pkg/errors@v0.9.1").purl
        'pkg:golang/pkg/errors@0.9.1'
    """
    try:
        coordinate = PackageCoordinate.parse(raw.strip())
    except ValueError as e:
        logger.debug(f"Skipping unparseable identifier {raw!r}: {e}")
        return None

    version = normalize_version(coordinate.version)
    if not version:
        logger.debug(f"Skipping {raw}: no version")
        return None

    return replace(coordinate, version=version)


def normalize_purls(purls: Iterable[str]) -> NormalizationResult:
    """
    Canonicalize and deduplicate package URLs.

    Two identifiers are duplicates when their canonical string forms are equal.
    Identifiers without a version are dropped; identifiers whose version is not
    semantic are listed as invalid. Neither case raises.

    Args:
        purls: Raw package URLs in input order

    Returns:
        NormalizationResult
    """
    result = NormalizationResult()
    seen: set[str] = set()

    for raw in purls:
        result.total += 1
        coordinate = canonical_coordinate(raw)
        if coordinate is None:
            result.dropped.append(raw)
            continue

        if not is_semver(coordinate.version):
            if coordinate.purl not in result.invalid:
                result.invalid.append(coordinate.purl)
            continue

        if coordinate.purl in seen:
            continue
        seen.add(coordinate.purl)
        result.coordinates.append(coordinate)

    logger.info(
        f"Normalized {result.total} identifiers: {result.usable_count} usable, "
        f"{len(result.invalid)} invalid, {len(result.dropped)} without version"
    )
    return result


def normalize_projects(projects: Iterable[DependencyProject]) -> NormalizationResult:
    """Normalize dependencies read from a manifest. See normalize_purls."""
    return normalize_purls(purl_for_project(p.name, p.version) for p in projects)
