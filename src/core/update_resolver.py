"""
Upgrade recommendations for vulnerable dependencies.

For every vulnerable dependency whose manifest offers a newer version, the
newer version is audited once; if it is clean it becomes the recommendation.
Only one hop is tried: a still-vulnerable candidate yields no recommendation.
"""

import logging
from typing import Iterable, Mapping, Optional

from core.auditor import BatchAuditor
from core.models import DependencyProject, VulnerabilityRecord, VulnerableDependency, is_semver
from core.normalizer import canonical_coordinate, purl_for_project

logger = logging.getLogger(__name__)


class UpdateResolver:
    """Finds non-vulnerable upgrades through a single extra audit batch."""

    def __init__(self, auditor: BatchAuditor):
        self.auditor = auditor

    def resolve(
        self,
        vulnerable: Iterable[VulnerabilityRecord],
        projects: Mapping[str, DependencyProject],
        exclusions: Optional[Iterable[str]] = None,
    ) -> dict[str, VulnerableDependency]:
        """
        Attach recommended updates to vulnerable records.

        Args:
            vulnerable: Records already known to be vulnerable
            projects: Originating dependency per case-folded coordinate key
            exclusions: Vulnerability ids/CVEs to ignore when judging candidates

        Returns:
            Mapping of coordinate key to VulnerableDependency, one per vulnerable record
        """
        exclusions = set(exclusions or [])
        resolved = {
            record.key: VulnerableDependency(record=record)
            for record in vulnerable
        }

        # candidate key -> keys of the vulnerable records it would replace
        candidates: dict[str, list[str]] = {}
        candidate_purls: dict[str, str] = {}
        for key in resolved:
            project = projects.get(key)
            if project is None or not project.update_version:
                continue

            candidate = canonical_coordinate(purl_for_project(project.name, project.update_version))
            if candidate is None or not is_semver(candidate.version):
                logger.debug(f"Update {project.update_version} for {project.name} is not auditable")
                continue
            candidates.setdefault(candidate.key, []).append(key)
            candidate_purls[candidate.key] = candidate.purl

        if not candidates:
            return resolved

        logger.info(f"Checking {len(candidates)} candidate updates for vulnerable dependencies")
        for update in self.auditor.audit(list(candidate_purls.values())):
            update = update.with_exclusions(exclusions)
            if update.is_vulnerable:
                logger.debug(f"Update {update.coordinates} is still vulnerable")
                continue
            for key in candidates.get(update.key, []):
                resolved[key] = VulnerableDependency(
                    record=resolved[key].record,
                    recommended_update=update,
                )

        return resolved
