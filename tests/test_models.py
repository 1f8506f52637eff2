"""Tests for domain models."""

from decimal import Decimal

import pytest

from core.models import (
    PackageCoordinate,
    PolicyAction,
    PolicyJobHandle,
    PolicyResult,
    Vulnerability,
    VulnerabilityRecord,
    is_semver,
)
from conftest import sample_vulnerability


class TestSemver:
    """Tests for semantic version detection."""

    @pytest.mark.parametrize("version", ["1.0.0", "0.9.1", "1.2.3-beta.1", "0.0.0-20190308221718-c2843e01d9a2"])
    def test_valid_versions(self, version):
        """Test that semantic versions are recognized."""
        assert is_semver(version)

    @pytest.mark.parametrize("version", ["v1.0.0", "1.0", "latest", "", "01.2.3"])
    def test_invalid_versions(self, version):
        """Test that non-semantic versions are rejected."""
        assert not is_semver(version)


class TestPackageCoordinate:
    """Tests for PackageCoordinate."""

    def test_purl_with_namespace(self):
        """Test purl rendering includes the namespace."""
        coordinate = PackageCoordinate("golang", "errors", "0.9.1", namespace="pkg")
        assert coordinate.purl == "pkg:golang/pkg/errors@0.9.1"
        assert str(coordinate) == coordinate.purl

    def test_key_is_case_folded(self):
        """Test that the cache key is lowercase."""
        coordinate = PackageCoordinate("golang", "Logrus", "1.4.2", namespace="Sirupsen")
        assert coordinate.key == "pkg:golang/sirupsen/logrus@1.4.2"

    def test_parse_nested_namespace(self):
        """Test parsing a purl with a multi-segment namespace."""
        coordinate = PackageCoordinate.parse("pkg:golang/golang.org/x/text@v0.3.2")
        assert coordinate.ecosystem == "golang"
        assert coordinate.namespace == "golang.org/x"
        assert coordinate.name == "text"
        assert coordinate.version == "v0.3.2"

    def test_parse_strips_qualifiers(self):
        """Test that qualifiers and subpaths are ignored."""
        coordinate = PackageCoordinate.parse("pkg:golang/pkg/errors@0.9.1?type=module#sub")
        assert coordinate.version == "0.9.1"

    def test_parse_without_version(self):
        """Test that a missing version parses as empty."""
        assert PackageCoordinate.parse("pkg:golang/pkg/errors").version == ""

    @pytest.mark.parametrize("value", ["", "golang/pkg/errors@1.0.0", "pkg:golang@1.0.0"])
    def test_parse_rejects_non_purls(self, value):
        """Test that malformed identifiers raise ValueError."""
        with pytest.raises(ValueError):
            PackageCoordinate.parse(value)


class TestVulnerability:
    """Tests for Vulnerability."""

    def test_from_dict_parses_score(self):
        """Test that the CVSS score becomes a Decimal."""
        vulnerability = Vulnerability.from_dict({"id": "abc", "cvssScore": 7.5, "cve": None})
        assert vulnerability.cvss_score == Decimal("7.5")
        assert vulnerability.cve == ""

    def test_from_dict_rejects_bad_score(self):
        """Test that an unparseable score raises ValueError."""
        with pytest.raises(ValueError):
            Vulnerability.from_dict({"id": "abc", "cvssScore": "high"})

    @pytest.mark.parametrize("data", ["oops", ["id"], None])
    def test_from_dict_rejects_non_objects(self, data):
        """Test that entries that are not objects raise ValueError."""
        with pytest.raises(ValueError):
            Vulnerability.from_dict(data)

    def test_matches_exclusion_by_cve_or_id(self):
        """Test exclusion matching on CVE and on OSS Index id."""
        vulnerability = sample_vulnerability()
        assert vulnerability.matches_exclusion({"CVE-2019-11840"})
        assert vulnerability.matches_exclusion({"sonatype-2019-0115"})
        assert not vulnerability.matches_exclusion({"CVE-2000-0001"})

    def test_empty_cve_never_matches_empty_entry(self):
        """Test that a vulnerability without CVE is not excluded by an empty entry."""
        vulnerability = sample_vulnerability(cve="")
        assert not vulnerability.matches_exclusion({""})


class TestVulnerabilityRecord:
    """Tests for VulnerabilityRecord."""

    def test_is_vulnerable(self, vulnerable_record, clean_record):
        """Test vulnerability detection."""
        assert vulnerable_record.is_vulnerable
        assert not clean_record.is_vulnerable

    def test_with_exclusions_returns_new_record(self, vulnerable_record):
        """Test that exclusions do not mutate the original record."""
        excluded = vulnerable_record.with_exclusions({"CVE-2019-11840"})

        assert not excluded.is_vulnerable
        assert excluded.vulnerabilities[0].excluded
        assert vulnerable_record.is_vulnerable
        assert not vulnerable_record.vulnerabilities[0].excluded

    def test_dict_round_trip(self, vulnerable_record):
        """Test serialization to and from the wire format."""
        restored = VulnerabilityRecord.from_dict(vulnerable_record.to_dict())
        assert restored == vulnerable_record

    def test_from_dict_requires_coordinates(self):
        """Test that entries without coordinates are rejected."""
        with pytest.raises(ValueError):
            VulnerabilityRecord.from_dict({"reference": "x"})


class TestPolicyModels:
    """Tests for policy job handles and results."""

    def test_absolute_status_url(self):
        """Test joining the status URL onto the server."""
        handle = PolicyJobHandle("api/v2/scan/applications/1/status/2", "http://iq:8070/", "user", "secret")
        assert handle.absolute_status_url == "http://iq:8070/api/v2/scan/applications/1/status/2"
        assert "secret" not in repr(handle)

    def test_pending_result_is_not_terminal(self):
        """Test that a body without verdict or error is pending."""
        assert not PolicyResult.from_dict({}).is_terminal

    def test_failure_result(self):
        """Test that a Failure verdict is terminal and a policy failure."""
        result = PolicyResult.from_dict(
            {"policyAction": "Failure", "reportHtmlUrl": "ui/links/report/1", "isError": False},
            server="http://iq:8070",
        )
        assert result.policy_action == PolicyAction.FAILURE
        assert result.is_terminal
        assert result.is_policy_failure
        assert result.absolute_report_url == "http://iq:8070/ui/links/report/1"

    def test_error_result_is_terminal(self):
        """Test that an evaluation error is terminal but not a policy failure."""
        result = PolicyResult.from_dict({"isError": True, "errorMessage": "boom"})
        assert result.is_terminal
        assert not result.is_policy_failure

    def test_unknown_action_rejected(self):
        """Test that unknown verdicts raise ValueError."""
        with pytest.raises(ValueError):
            PolicyResult.from_dict({"policyAction": "Maybe"})
