"""
Audit Processor

Runs one accessibility audit end to end:

1. Validate the URL
2. Run axe-core (failure fails the audit)
3. Run Pa11y (failure degrades to an axe-only report)
4. Build the consensus report
5. Enrich it with LLM guidance (optional)
6. Persist it (optional)

Usage:
    processor = AuditProcessor(scanner, enricher=enricher, store=store)
    outcome = processor.process(audit_id, "https://example.com")
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from a11y_intelligence.enrichment.violation_enricher import ViolationEnricher
from a11y_intelligence.jobs.scanners import ScannerCollaborator, validate_audit_url
from a11y_intelligence.models.violations import ConsensusReport
from a11y_intelligence.services.audit_summary import build_audit_summary
from a11y_intelligence.services.consensus_engine import ConsensusEngine, get_consensus_engine
from db.audit_store import AuditStore
from runner.logging_setup import get_logger

logger = get_logger("audit_processor")


@dataclass
class AuditOutcome:
    """Result of processing one audit."""
    audit_id: int
    url: str
    report: ConsensusReport
    page_title: str = ""
    secondary_available: bool = True
    summary: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()


class AuditProcessor:
    """
    Processes audits against a scanner collaborator.

    Features:
    - URL validation before any scan
    - Graceful degradation when the secondary scanner fails
    - Optional LLM enrichment and persistence
    """

    def __init__(
        self,
        scanner: ScannerCollaborator,
        engine: Optional[ConsensusEngine] = None,
        enricher: Optional[ViolationEnricher] = None,
        store: Optional[AuditStore] = None,
    ):
        """
        Initialize processor.

        Args:
            scanner: Runs axe-core and Pa11y
            engine: Consensus engine (shared engine if not provided)
            enricher: LLM enricher (no enrichment if None)
            store: Audit store (nothing persisted if None)
        """
        self.scanner = scanner
        self.engine = engine or get_consensus_engine()
        self.enricher = enricher
        self.store = store

    def _run_secondary(self, url: str) -> Optional[List[Dict[str, Any]]]:
        try:
            issues = self.scanner.run_secondary(url)
        except Exception as e:
            logger.warning(f"Pa11y failed for {url}, continuing with axe-core only (lower coverage): {e}")
            return None
        return issues or []

    def process(self, audit_id: int, url: str) -> AuditOutcome:
        """
        Process one audit.

        Args:
            audit_id: Audit id (used for persistence and logs)
            url: Page URL

        Returns:
            AuditOutcome

        Raises:
            InvalidAuditURL: For URLs that must not be audited
            Exception: Anything raised by the primary scanner or the store;
                the audit is marked failed first when a store is configured
        """
        started_at = datetime.now()
        logger.info(f"Processing audit {audit_id}: {url}")

        try:
            url = validate_audit_url(url)

            axe_results = self.scanner.run_primary(url) or {}
            pa11y_issues = self._run_secondary(url)
            secondary_available = pa11y_issues is not None

            report = self.engine.build_report_from_raw(
                axe_results,
                pa11y_issues or [],
                secondary_ran=secondary_available,
            )

            page_title = self.scanner.page_title(url) or ""

            if self.enricher is not None:
                report = self.enricher.enrich_report(report, url, title=page_title)

            summary = build_audit_summary(report, axe_results.get('violations') or [])
            summary["secondary_available"] = secondary_available

            if self.store is not None:
                self.store.save_report(audit_id, report, page_title=page_title, audit_summary=summary)

        except Exception as e:
            logger.error(f"Audit {audit_id} failed: {e}")
            if self.store is not None:
                self.store.mark_failed(audit_id, str(e))
            raise

        outcome = AuditOutcome(
            audit_id=audit_id,
            url=url,
            report=report,
            page_title=page_title,
            secondary_available=secondary_available,
            summary=summary,
            started_at=started_at,
            completed_at=datetime.now(),
        )

        logger.info(
            f"✓ Audit {audit_id} completed in {outcome.duration_seconds:.1f}s: "
            f"score={report.overall_score} confidence={report.overall_confidence} "
            f"violations={report.total_violations}"
        )
        return outcome
