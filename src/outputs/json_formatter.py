"""
JSON audit report.

Uses the OSS Index wire format for records so the output can be fed to
other OSS Index tooling.
"""

import json

from core.orchestrator import AuditReport
from outputs.base import ReportFormatter


class JSONFormatter(ReportFormatter):
    """Machine readable report."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def supports_format(self) -> str:
        return "json"

    def to_dict(self, report: AuditReport) -> dict:
        vulnerable = []
        for key in sorted(report.vulnerable):
            dependency = report.vulnerable[key]
            entry = dependency.record.to_dict()
            if dependency.recommended_update is not None:
                entry["recommendedUpdate"] = dependency.recommended_update.coordinates
            vulnerable.append(entry)

        return {
            "audited": [report.audited[key].to_dict() for key in sorted(report.audited)],
            "vulnerable": vulnerable,
            "invalid": [record.to_dict() for record in report.invalid],
            "excluded": [v.to_dict() for v in report.excluded],
            "num_audited": report.package_count,
            "num_vulnerable": report.vulnerable_count,
            "num_exclusions": report.exclusion_count,
        }

    def format(self, report: AuditReport) -> str:
        return json.dumps(self.to_dict(report), indent=self.indent)
