"""Tests for the text and JSON report formatters."""

import json
from decimal import Decimal

import pytest

from core.models import VulnerabilityRecord, VulnerableDependency
from core.orchestrator import AuditReport
from outputs import FORMATTERS, JSONFormatter, TextFormatter
from outputs.text_formatter import score_assessment
from conftest import sample_vulnerability


@pytest.fixture
def report(vulnerable_record, clean_record):
    update = VulnerabilityRecord(coordinates="pkg:golang/golang.org/x/crypto@0.0.0-20200622213623-75b288015ac9")
    return AuditReport(
        audited={vulnerable_record.key: vulnerable_record, clean_record.key: clean_record},
        invalid=[VulnerabilityRecord(coordinates="pkg:golang/x/y@master", invalid_semver=True)],
        vulnerable={vulnerable_record.key: VulnerableDependency(vulnerable_record, update)},
        package_count=2,
        total_count=3,
    )


class TestScoreAssessment:
    """Tests for CVSS severity bands."""

    @pytest.mark.parametrize(
        "score,expected",
        [("10", "Critical"), ("9.0", "Critical"), ("7.5", "High"), ("5.9", "Medium"), ("3.9", "Low"), ("0", "Low")],
    )
    def test_bands(self, score, expected):
        """Test band boundaries."""
        assert score_assessment(Decimal(score)) == expected


class TestTextFormatter:
    """Tests for TextFormatter."""

    def test_full_report(self, report):
        """Test that every section is present."""
        output = TextFormatter().format(report)

        assert "do not use semver" in output
        assert "pkg:golang/x/y@master" in output
        assert "pkg:golang/pkg/errors@0.9.1" in output
        assert "1 Non Vulnerable Packages" in output
        assert "1 known vulnerabilities affecting installed version" in output
        assert "CVSS Score         5.9/10 (Medium)" in output
        assert "Recommended update: pkg:golang/golang.org/x/crypto@0.0.0-20200622213623-75b288015ac9" in output
        assert "Audited Dependencies    2" in output
        assert "Vulnerable Dependencies 1" in output
        assert "Excluded Vulnerabilities" not in output

    def test_quiet_omits_clean_packages(self, report):
        """Test that quiet mode lists only vulnerable packages."""
        output = TextFormatter(quiet=True).format(report)

        assert "pkg:golang/pkg/errors@0.9.1" not in output
        assert "Non Vulnerable Packages" not in output
        assert "1 Vulnerable Packages" in output

    def test_excluded_vulnerabilities_hidden(self):
        """Test that excluded vulnerabilities are counted but not listed."""
        record = VulnerabilityRecord(
            coordinates="pkg:golang/a/b@1.0.0",
            vulnerabilities=(sample_vulnerability(), sample_vulnerability(id="other", cve="", excluded=True)),
        )
        report = AuditReport(
            audited={record.key: record},
            vulnerable={record.key: VulnerableDependency(record)},
            excluded=[record.vulnerabilities[1]],
            package_count=1,
            total_count=1,
        )

        output = TextFormatter().format(report)

        assert "1 known vulnerabilities" in output
        assert "OSS Index ID       other" not in output
        assert "Recommended update" not in output
        assert "Excluded Vulnerabilities 1" in output

    def test_clean_report(self, clean_record):
        """Test a report without findings."""
        report = AuditReport(audited={clean_record.key: clean_record}, package_count=1, total_count=1)

        output = TextFormatter().format(report)

        assert "WARNING" not in output
        assert "Vulnerable Dependencies 0" in output


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_structure(self, report, vulnerable_record):
        """Test keys and counts."""
        data = json.loads(JSONFormatter().format(report))

        assert data["num_audited"] == 2
        assert data["num_vulnerable"] == 1
        assert data["num_exclusions"] == 0
        assert len(data["audited"]) == 2
        assert data["invalid"] == [{"coordinates": "pkg:golang/x/y@master", "reference": "", "vulnerabilities": [], "invalidSemVer": True}]

        vulnerable = data["vulnerable"][0]
        assert vulnerable["coordinates"] == vulnerable_record.coordinates
        assert vulnerable["vulnerabilities"][0]["cve"] == "CVE-2019-11840"
        assert vulnerable["vulnerabilities"][0]["cvssScore"] == "5.9"
        assert vulnerable["recommendedUpdate"].endswith("75b288015ac9")

    def test_record_round_trip(self, report, vulnerable_record):
        """Test that records in the output read back as the same records."""
        data = JSONFormatter().to_dict(report)
        assert VulnerabilityRecord.from_dict(data["vulnerable"][0]) == vulnerable_record


class TestRegistry:
    """Tests for the formatter registry."""

    def test_formats(self):
        """Test that each registered formatter names its format."""
        for name, formatter_class in FORMATTERS.items():
            assert formatter_class().supports_format() == name
