"""
Domain models for dependency auditing.

This module defines the core data structures used throughout the application.
All models are immutable (frozen dataclasses) to prevent accidental mutation;
derived views (such as applying exclusions) build new instances instead.
"""

import re
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def is_semver(version: str) -> bool:
    """Return True if version is a valid semantic version (without a "v" prefix)."""
    return bool(SEMVER_PATTERN.match(version))


@dataclass(frozen=True)
class PackageCoordinate:
    """
    Canonical identifier for one package at one version.

    Attributes:
        ecosystem: Package type (e.g., "golang")
        name: Package name
        version: Package version, normalized (no "v" prefix, no build metadata)
        namespace: Optional namespace (e.g., the GitHub owner)
    """

    ecosystem: str
    name: str
    version: str
    namespace: Optional[str] = None

    @property
    def purl(self) -> str:
        """Package URL form, e.g. pkg:golang/owner/name@1.2.3."""
        path = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"pkg:{self.ecosystem}/{path}@{self.version}"

    @property
    def key(self) -> str:
        """Case-folded lookup key used by the result cache."""
        return self.purl.lower()

    @classmethod
    def parse(cls, purl: str) -> "PackageCoordinate":
        """
        Parse a package URL without normalizing its version.

        Args:
            purl: Package URL such as "pkg:golang/github.com/owner/name@v1.0.0"

        Returns:
            PackageCoordinate

        Raises:
            ValueError: If the string is not a package URL
        """
        if not purl or not purl.startswith("pkg:"):
            raise ValueError(f"Not a package URL: {purl!r}")

        body = purl[len("pkg:"):].split("?", 1)[0].split("#", 1)[0]
        path, sep, version = body.rpartition("@")
        if not sep:
            path, version = body, ""

        segments = [s for s in path.split("/") if s]
        if len(segments) < 2:
            raise ValueError(f"Package URL needs a type and a name: {purl!r}")

        namespace = "/".join(segments[1:-1]) or None
        return cls(
            ecosystem=segments[0].lower(),
            name=segments[-1],
            version=version,
            namespace=namespace,
        )

    def __str__(self) -> str:
        return self.purl


@dataclass(frozen=True)
class DependencyProject:
    """
    A dependency as read from a manifest.

    Attributes:
        name: Module path (e.g., "github.com/pkg/errors")
        version: Version as written in the manifest (may carry a "v" prefix)
        update_version: Newer version the package manager offers, if any
    """

    name: str
    version: str
    update_version: Optional[str] = None


@dataclass(frozen=True)
class Vulnerability:
    """
    A single vulnerability reported by OSS Index.

    Attributes:
        id: OSS Index identifier
        title: Short title
        description: Long description
        cvss_score: CVSS base score (0-10)
        cvss_vector: CVSS vector string
        cve: CVE identifier, if assigned
        reference: URL with details
        excluded: Whether the user excluded this vulnerability
    """

    id: str
    title: str = ""
    description: str = ""
    cvss_score: Decimal = Decimal("0")
    cvss_vector: str = ""
    cve: str = ""
    reference: str = ""
    excluded: bool = False

    def matches_exclusion(self, exclusions: "set[str] | list[str]") -> bool:
        """Return True if the CVE or the OSS Index id is in the exclusion list."""
        return (bool(self.cve) and self.cve in exclusions) or self.id in exclusions

    def to_dict(self) -> dict[str, Any]:
        """Convert to the OSS Index wire format (plus the excluded flag)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "cvssScore": str(self.cvss_score),
            "cvssVector": self.cvss_vector,
            "cve": self.cve,
            "reference": self.reference,
            "excluded": self.excluded,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vulnerability":
        """
        Create from the OSS Index wire format.

        Raises:
            ValueError: If the entry is not an object or the score is malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Vulnerability entry is not an object: {data!r}")

        try:
            score = Decimal(str(data.get("cvssScore", 0) or 0))
        except InvalidOperation:
            raise ValueError(f"Invalid CVSS score: {data.get('cvssScore')!r}")

        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            cvss_score=score,
            cvss_vector=data.get("cvssVector", "") or "",
            cve=data.get("cve", "") or "",
            reference=data.get("reference", "") or "",
            excluded=bool(data.get("excluded", False)),
        )


@dataclass(frozen=True)
class VulnerabilityRecord:
    """
    Audit result for one coordinate.

    Attributes:
        coordinates: Coordinate string as reported by OSS Index
        reference: Human readable OSS Index URL for the component
        vulnerabilities: Vulnerabilities affecting the component
        invalid_semver: True for records that could not be audited because
                        their version is not a semantic version
    """

    coordinates: str
    reference: str = ""
    vulnerabilities: tuple[Vulnerability, ...] = field(default_factory=tuple)
    invalid_semver: bool = False

    @property
    def key(self) -> str:
        """Case-folded lookup key used by the result cache."""
        return self.coordinates.lower()

    @property
    def is_vulnerable(self) -> bool:
        """A record is vulnerable when at least one vulnerability is not excluded."""
        return any(not v.excluded for v in self.vulnerabilities)

    def with_exclusions(self, exclusions: "set[str] | list[str]") -> "VulnerabilityRecord":
        """Return a copy with matching vulnerabilities marked as excluded."""
        if not exclusions:
            return self
        vulnerabilities = tuple(
            replace(v, excluded=True) if v.matches_exclusion(exclusions) else v
            for v in self.vulnerabilities
        )
        return replace(self, vulnerabilities=vulnerabilities)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the OSS Index wire format."""
        data = {
            "coordinates": self.coordinates,
            "reference": self.reference,
            "vulnerabilities": [v.to_dict() for v in self.vulnerabilities],
        }
        if self.invalid_semver:
            data["invalidSemVer"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VulnerabilityRecord":
        """
        Create from the OSS Index wire format.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        if not isinstance(data, dict) or not data.get("coordinates"):
            raise ValueError(f"Component report entry has no coordinates: {data!r}")

        vulnerabilities = data.get("vulnerabilities") or []
        if not isinstance(vulnerabilities, list):
            raise ValueError(f"Vulnerabilities of {data['coordinates']} are not a list")

        return cls(
            coordinates=data["coordinates"],
            reference=data.get("reference", "") or "",
            vulnerabilities=tuple(Vulnerability.from_dict(v) for v in vulnerabilities),
            invalid_semver=bool(data.get("invalidSemVer", False)),
        )


@dataclass(frozen=True)
class VulnerableDependency:
    """
    A vulnerable record paired with the upgrade that removes its vulnerabilities.

    Attributes:
        record: The vulnerable audit result
        recommended_update: Audit result for a non-vulnerable upgrade, if one was found
    """

    record: VulnerabilityRecord
    recommended_update: Optional[VulnerabilityRecord] = None


class PolicyAction(str, Enum):
    """Verdicts returned by IQ Server policy evaluation."""

    NONE = "None"
    WARNING = "Warning"
    FAILURE = "Failure"


@dataclass(frozen=True)
class PolicyJobHandle:
    """
    A policy evaluation accepted by IQ Server and awaiting completion.

    Attributes:
        status_url: Relative URL to poll for the evaluation result
        server: IQ Server base URL
        username: IQ Server user
        token: IQ Server token
    """

    status_url: str
    server: str
    username: str
    token: str = field(repr=False)

    @property
    def absolute_status_url(self) -> str:
        """Status URL joined onto the server base."""
        return f"{self.server.rstrip('/')}/{self.status_url.lstrip('/')}"


@dataclass(frozen=True)
class PolicyResult:
    """
    Terminal result of an IQ Server policy evaluation.

    Attributes:
        policy_action: Verdict (None, Warning or Failure)
        report_url: Relative URL of the HTML report
        is_error: Whether IQ Server reported an evaluation error
        error_message: Error details from IQ Server
        server: IQ Server base URL, used to build the absolute report URL
    """

    policy_action: Optional[PolicyAction] = None
    report_url: str = ""
    is_error: bool = False
    error_message: str = ""
    server: str = ""

    @property
    def is_terminal(self) -> bool:
        """An evaluation is finished once it errored or produced a verdict."""
        return self.is_error or self.policy_action is not None

    @property
    def is_policy_failure(self) -> bool:
        """True when the evaluation succeeded with a Failure verdict."""
        return not self.is_error and self.policy_action == PolicyAction.FAILURE

    @property
    def absolute_report_url(self) -> str:
        """Report URL joined onto the server base."""
        if not self.report_url or not self.server:
            return self.report_url
        return f"{self.server.rstrip('/')}/{self.report_url.lstrip('/')}"

    @classmethod
    def from_dict(cls, data: dict[str, Any], server: str = "") -> "PolicyResult":
        """
        Create from an IQ Server status response.

        Raises:
            ValueError: If the policy action is not a known verdict
        """
        action = data.get("policyAction")
        return cls(
            policy_action=PolicyAction(action) if action else None,
            report_url=data.get("reportHtmlUrl", "") or "",
            is_error=bool(data.get("isError", False)),
            error_message=data.get("errorMessage", "") or "",
            server=server,
        )
