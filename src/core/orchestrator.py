"""
Orchestrates the audit workflow for Sleuth.

Wires normalization, batched auditing, exclusions and update resolution into
a single AuditReport, and hands audited coordinates to IQ Server for policy
evaluation.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, Optional

import requests

from core.auditor import BatchAuditor
from core.cache import ResultCache
from core.config import IQConfig, OSSIndexConfig
from core.models import (
    DependencyProject,
    PolicyResult,
    Vulnerability,
    VulnerabilityRecord,
    VulnerableDependency,
)
from core.normalizer import canonical_coordinate, normalize_projects, purl_for_project
from core.policy import PolicyEvaluator
from core.update_resolver import UpdateResolver
from integrations.iq_server import IQServerClient
from integrations.ossindex import OSSIndexClient
from utils.logging_helpers import log_info_header
from utils.validation import mask_username

logger = logging.getLogger(__name__)


@dataclass
class AuditReport:
    """
    Combined result of one audit.

    Attributes:
        audited: Audit result per case-folded coordinate key
        invalid: Records whose version is not a semantic version
        vulnerable: Vulnerable records with their recommended update, per key
        excluded: Vulnerabilities suppressed by the exclusion list
        package_count: Number of coordinates sent for audit
        total_count: Number of dependencies given
    """

    audited: dict[str, VulnerabilityRecord] = field(default_factory=dict)
    invalid: list[VulnerabilityRecord] = field(default_factory=list)
    vulnerable: dict[str, VulnerableDependency] = field(default_factory=dict)
    excluded: list[Vulnerability] = field(default_factory=list)
    package_count: int = 0
    total_count: int = 0

    @property
    def vulnerable_count(self) -> int:
        return len(self.vulnerable)

    @property
    def exclusion_count(self) -> int:
        return len(self.excluded)

    @property
    def has_vulnerabilities(self) -> bool:
        return self.vulnerable_count > 0


class AuditOrchestrator:
    """
    Runs audits and policy evaluations with explicitly owned components.

    Nothing is shared between instances, so several orchestrators can run in
    the same process.
    """

    def __init__(
        self,
        auditor: BatchAuditor,
        resolver: Optional[UpdateResolver] = None,
        policy: Optional[PolicyEvaluator] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            auditor: Batch auditor (owns the OSS Index client and the cache)
            resolver: Update resolver (defaults to one sharing the auditor)
            policy: Policy evaluator, required only for submit_for_policy
        """
        self.auditor = auditor
        self.resolver = resolver or UpdateResolver(auditor)
        self.policy = policy

    @classmethod
    def from_config(
        cls,
        oss_config: OSSIndexConfig,
        iq_config: Optional[IQConfig] = None,
        session: Optional[requests.Session] = None,
        cancel_event: Optional[threading.Event] = None,
        cache_enabled: bool = True,
    ) -> "AuditOrchestrator":
        """Build an orchestrator and all of its components from configuration."""
        session = session or requests.Session()

        if oss_config.username:
            logger.debug(f"OSS Index user: {mask_username(oss_config.username)}")

        client = OSSIndexClient(
            username=oss_config.username,
            token=oss_config.token,
            url=oss_config.url,
            session=session,
        )
        cache = ResultCache(oss_config.cache_dir, ttl=oss_config.cache_ttl, enabled=cache_enabled)
        auditor = BatchAuditor(client, cache)

        policy = None
        if iq_config is not None:
            logger.debug(f"IQ Server user: {mask_username(iq_config.username)}")
            iq_client = IQServerClient(
                server=iq_config.server,
                username=iq_config.username,
                token=iq_config.token,
                session=session,
            )
            policy = PolicyEvaluator(
                iq_client,
                max_retries=iq_config.max_retries,
                poll_interval=iq_config.poll_interval,
                cancel_event=cancel_event,
            )

        return cls(auditor, policy=policy)

    def run(
        self,
        projects: Iterable[DependencyProject],
        exclusions: Optional[Iterable[str]] = None,
    ) -> AuditReport:
        """
        Audit dependencies and resolve updates for the vulnerable ones.

        Args:
            projects: Dependencies read from a manifest
            exclusions: CVEs / OSS Index ids to ignore

        Returns:
            AuditReport

        Raises:
            RateLimited, RemoteAuditFailed, TransportError: OSS Index could not be queried
        """
        projects = list(projects)
        exclusions = set(exclusions or [])
        log_info_header(f"Auditing {len(projects)} dependencies with OSS Index", logger=logger)

        normalized = normalize_projects(projects)
        project_index: dict[str, DependencyProject] = {}
        for project in projects:
            coordinate = canonical_coordinate(purl_for_project(project.name, project.version))
            if coordinate is not None:
                project_index.setdefault(coordinate.key, project)

        report = AuditReport(
            invalid=normalized.invalid_records(),
            package_count=normalized.usable_count,
            total_count=normalized.total,
        )

        vulnerable_records = []
        for record in self.auditor.audit(normalized.purls):
            record = record.with_exclusions(exclusions)
            report.audited[record.key] = record
            report.excluded.extend(v for v in record.vulnerabilities if v.excluded)
            if record.is_vulnerable:
                vulnerable_records.append(record)

        report.vulnerable = self.resolver.resolve(vulnerable_records, project_index, exclusions)

        logger.info(
            f"Audited {len(report.audited)} packages: {report.vulnerable_count} vulnerable, "
            f"{len(report.invalid)} invalid, {report.exclusion_count} vulnerabilities excluded"
        )
        logger.info(self.auditor.cache.summary())
        return report

    def submit_for_policy(
        self,
        projects: Iterable[DependencyProject],
        application: str,
        stage: str,
        report: Optional[AuditReport] = None,
    ) -> PolicyResult:
        """
        Evaluate dependencies against IQ Server policy.

        Args:
            projects: Dependencies read from a manifest
            application: Public application id
            stage: Evaluation stage
            report: Audit report whose findings go into the bill of materials (optional)

        Returns:
            Terminal PolicyResult

        Raises:
            ValueError: If the orchestrator was built without a policy evaluator
        """
        if self.policy is None:
            raise ValueError("No IQ Server configuration given")

        if report is not None:
            records = list(report.audited.values())
        else:
            normalized = normalize_projects(projects)
            records = [VulnerabilityRecord(coordinates=purl) for purl in normalized.purls]

        logger.info(f"Submitting {len(records)} packages to IQ Server for application {application}")
        return self.policy.evaluate(application, records, stage)

    def clean_cache(self) -> None:
        """Delete all cached audit results."""
        self.auditor.cache.clear()
