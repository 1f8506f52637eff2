"""
Plain text audit report.

Lists packages that could not be audited, one block per vulnerable package
(with the recommended update when there is one) and a summary.
"""

from decimal import Decimal

from core.models import Vulnerability, VulnerableDependency
from core.orchestrator import AuditReport
from outputs.base import ReportFormatter

SEPARATOR = "-" * 60


def score_assessment(score: Decimal) -> str:
    """
    Name the CVSS severity band of a score.

    Examples:
        >>> score_assessment(Decimal("9.8"))
        'Critical'
        >>> score_assessment(Decimal("4"))
        'Medium'
    """
    if score >= 9:
        return "Critical"
    if score >= 7:
        return "High"
    if score >= 4:
        return "Medium"
    return "Low"


class TextFormatter(ReportFormatter):
    """Human readable report for terminals and CI logs."""

    def __init__(self, quiet: bool = False):
        """
        Args:
            quiet: Omit the list of non-vulnerable packages
        """
        self.quiet = quiet

    def supports_format(self) -> str:
        return "text"

    def format(self, report: AuditReport) -> str:
        lines: list[str] = []

        if report.invalid:
            lines.append("!!!!! WARNING !!!!!")
            lines.append("Scanning cannot be completed on the following package(s) since they do not use semver.")
            lines.extend(record.coordinates for record in report.invalid)
            lines.append("")

        if not self.quiet:
            clean = sorted(
                record.coordinates
                for key, record in report.audited.items()
                if key not in report.vulnerable
            )
            lines.extend(clean)
            lines.append(f"{len(clean)} Non Vulnerable Packages")
            lines.append("")

        for key in sorted(report.vulnerable):
            lines.extend(self._vulnerable_block(report.vulnerable[key]))

        if report.vulnerable:
            lines.append(f"{report.vulnerable_count} Vulnerable Packages")
            lines.append("")

        lines.append("Summary")
        lines.append(SEPARATOR)
        lines.append(f"Audited Dependencies    {report.package_count}")
        lines.append(f"Vulnerable Dependencies {report.vulnerable_count}")
        if report.exclusion_count:
            lines.append(f"Excluded Vulnerabilities {report.exclusion_count}")
        lines.append(SEPARATOR)

        return "\n".join(lines) + "\n"

    def _vulnerable_block(self, dependency: VulnerableDependency) -> list[str]:
        record = dependency.record
        active = sorted(
            (v for v in record.vulnerabilities if not v.excluded),
            key=lambda v: v.cvss_score,
            reverse=True,
        )

        lines = [
            record.coordinates,
            f"{len(active)} known vulnerabilities affecting installed version",
        ]
        for vulnerability in active:
            lines.extend(self._vulnerability_lines(vulnerability))

        if dependency.recommended_update is not None:
            lines.append(f"Recommended update: {dependency.recommended_update.coordinates}")
        lines.append("")
        return lines

    @staticmethod
    def _vulnerability_lines(vulnerability: Vulnerability) -> list[str]:
        score = vulnerability.cvss_score
        return [
            SEPARATOR,
            vulnerability.title,
            f"  Description        {vulnerability.description}",
            f"  OSS Index ID       {vulnerability.id}",
            f"  CVSS Score         {score}/10 ({score_assessment(score)})",
            f"  CVSS Vector        {vulnerability.cvss_vector}",
            f"  Link for more info {vulnerability.reference}",
        ]
