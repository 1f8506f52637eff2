"""Tests for update resolution."""

from unittest.mock import Mock

from core.auditor import BatchAuditor
from core.models import DependencyProject, VulnerabilityRecord
from core.update_resolver import UpdateResolver
from conftest import sample_vulnerability


def vulnerable(coordinates):
    return VulnerabilityRecord(coordinates=coordinates, vulnerabilities=(sample_vulnerability(),))


def clean(coordinates):
    return VulnerabilityRecord(coordinates=coordinates)


class TestUpdateResolver:
    """Tests for UpdateResolver."""

    def make_resolver(self, audit_results):
        auditor = Mock(spec=BatchAuditor)
        auditor.audit.return_value = audit_results
        return UpdateResolver(auditor), auditor

    def test_clean_update_is_recommended(self):
        """Test that a non-vulnerable candidate is attached to the vulnerable record."""
        record = vulnerable("pkg:golang/pkg/errors@0.8.0")
        projects = {record.key: DependencyProject("github.com/pkg/errors", "v0.8.0", update_version="v0.9.1")}
        resolver, auditor = self.make_resolver([clean("pkg:golang/pkg/errors@0.9.1")])

        resolved = resolver.resolve([record], projects)

        auditor.audit.assert_called_once_with(["pkg:golang/pkg/errors@0.9.1"])
        assert resolved[record.key].record == record
        assert resolved[record.key].recommended_update.coordinates == "pkg:golang/pkg/errors@0.9.1"

    def test_vulnerable_update_is_not_recommended(self):
        """Test that only one hop is tried."""
        record = vulnerable("pkg:golang/pkg/errors@0.8.0")
        projects = {record.key: DependencyProject("github.com/pkg/errors", "v0.8.0", update_version="v0.8.1")}
        resolver, auditor = self.make_resolver([vulnerable("pkg:golang/pkg/errors@0.8.1")])

        resolved = resolver.resolve([record], projects)

        assert auditor.audit.call_count == 1
        assert resolved[record.key].recommended_update is None

    def test_excluded_update_counts_as_clean(self):
        """Test that exclusions apply when judging candidates."""
        record = vulnerable("pkg:golang/pkg/errors@0.8.0")
        projects = {record.key: DependencyProject("github.com/pkg/errors", "v0.8.0", update_version="v0.8.1")}
        resolver, _ = self.make_resolver([vulnerable("pkg:golang/pkg/errors@0.8.1")])

        resolved = resolver.resolve([record], projects, exclusions=["CVE-2019-11840"])

        assert resolved[record.key].recommended_update is not None

    def test_no_update_versions_means_no_audit(self):
        """Test that no remote call is made without candidates."""
        record = vulnerable("pkg:golang/pkg/errors@0.8.0")
        projects = {record.key: DependencyProject("github.com/pkg/errors", "v0.8.0")}
        resolver, auditor = self.make_resolver([])

        resolved = resolver.resolve([record], projects)

        auditor.audit.assert_not_called()
        assert resolved[record.key].recommended_update is None

    def test_single_batch_for_many_candidates(self):
        """Test that all candidates are audited in one call, deduplicated."""
        first = vulnerable("pkg:golang/a/one@1.0.0")
        second = vulnerable("pkg:golang/b/two@1.0.0")
        projects = {
            first.key: DependencyProject("github.com/a/one", "v1.0.0", update_version="v1.1.0"),
            second.key: DependencyProject("github.com/b/two", "v1.0.0", update_version="not-a-version"),
        }
        resolver, auditor = self.make_resolver([clean("pkg:golang/a/one@1.1.0")])

        resolved = resolver.resolve([first, second], projects)

        auditor.audit.assert_called_once_with(["pkg:golang/a/one@1.1.0"])
        assert resolved[first.key].recommended_update is not None
        assert resolved[second.key].recommended_update is None

    def test_record_without_project(self):
        """Test that records with no originating project pass through."""
        record = vulnerable("pkg:golang/pkg/errors@0.8.0")
        resolver, auditor = self.make_resolver([])

        resolved = resolver.resolve([record], {})

        assert list(resolved) == [record.key]
        auditor.audit.assert_not_called()
