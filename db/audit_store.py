"""
Audit Store

Persistence operations for accessibility audits:
- create / claim / complete / fail audits
- save a consensus report as an immutable violation snapshot
- queue queries (pending ids, stalled resets, status counts)
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update

from a11y_intelligence.models.violations import ConsensusReport, NormalizedViolation
from a11y_intelligence.services.audit_summary import count_by_impact
from db.database_manager import DatabaseManager
from db.models import AccessibilityAudit, AuditStatus, AuditViolation
from runner.logging_setup import get_logger

logger = get_logger("audit_store")


def _violation_row(audit_id: int, violation: NormalizedViolation) -> AuditViolation:
    enrichment = violation.enrichment
    return AuditViolation(
        audit_id=audit_id,
        rule_id=violation.rule_id,
        description=violation.description,
        impact=violation.impact.value,
        help_url=violation.help_url,
        detected_by=list(violation.detected_by),
        confidence=violation.confidence,
        wcag_level=violation.wcag_level.value,
        wcag_criteria=[c.to_dict() for c in violation.wcag_criteria],
        selector=violation.selector,
        html=violation.html,
        target=list(violation.target),
        element_count=violation.element_count,
        explanation=enrichment.explanation if enrichment else None,
        fix_suggestion=enrichment.fix_suggestion if enrichment else None,
        code_example=enrichment.code_example if enrichment else None,
    )


class AuditStore:
    """Audit persistence on top of DatabaseManager."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def create_audit(self, url: str) -> int:
        """Insert a pending audit and return its id."""
        with self.db_manager.get_session() as session:
            audit = AccessibilityAudit(url=url, status=AuditStatus.PENDING.value)
            session.add(audit)
            session.flush()
            audit_id = audit.id

        logger.info(f"Created audit {audit_id} for {url}")
        return audit_id

    def get_audit(self, audit_id: int) -> Optional[Dict[str, Any]]:
        """Return the audit as a dict (with its violations), or None."""
        with self.db_manager.get_session() as session:
            audit = session.get(AccessibilityAudit, audit_id)
            if audit is None:
                return None

            return {
                "id": audit.id,
                "url": audit.url,
                "status": audit.status,
                "page_title": audit.page_title,
                "overall_score": audit.overall_score,
                "overall_confidence": audit.overall_confidence,
                "total_violations": audit.total_violations,
                "consensus_count": audit.consensus_count,
                "unique_count": audit.unique_count,
                "impact_counts": audit.impact_counts,
                "tools_used": audit.tools_used,
                "audit_summary": audit.audit_summary,
                "ai_summary": audit.ai_summary,
                "recommendations": audit.recommendations,
                "error_message": audit.error_message,
                "violations": [
                    {
                        "rule_id": v.rule_id,
                        "impact": v.impact,
                        "detected_by": v.detected_by,
                        "confidence": v.confidence,
                        "wcag_level": v.wcag_level,
                        "element_count": v.element_count,
                        "explanation": v.explanation,
                    }
                    for v in audit.violations
                ],
            }

    def get_url(self, audit_id: int) -> Optional[str]:
        with self.db_manager.get_session() as session:
            audit = session.get(AccessibilityAudit, audit_id)
            return audit.url if audit else None

    def mark_processing(self, audit_id: int) -> bool:
        """
        Claim a pending audit.

        Returns:
            True if the audit moved from pending to processing
        """
        with self.db_manager.get_session() as session:
            result = session.execute(
                update(AccessibilityAudit)
                .where(AccessibilityAudit.id == audit_id)
                .where(AccessibilityAudit.status == AuditStatus.PENDING.value)
                .values(status=AuditStatus.PROCESSING.value, started_at=datetime.now(), error_message=None)
            )
            return result.rowcount == 1

    def save_report(
        self,
        audit_id: int,
        report: ConsensusReport,
        page_title: Optional[str] = None,
        audit_summary: Optional[Dict[str, Any]] = None,
    ):
        """
        Store a report and mark the audit completed.

        Any previous violation snapshot of the audit is replaced.
        """
        with self.db_manager.get_session() as session:
            audit = session.get(AccessibilityAudit, audit_id)
            if audit is None:
                raise ValueError(f"Audit {audit_id} not found")

            audit.violations.clear()
            session.flush()

            audit.page_title = page_title
            audit.status = AuditStatus.COMPLETED.value
            audit.overall_score = report.overall_score
            audit.overall_confidence = report.overall_confidence
            audit.total_violations = report.total_violations
            audit.consensus_count = report.consensus_count
            audit.unique_count = report.unique_count
            audit.impact_counts = count_by_impact(list(report.violations))
            audit.tools_used = list(report.tools_used)
            audit.primary_summary = report.primary_stats.to_dict()
            audit.secondary_summary = report.secondary_stats.to_dict()
            audit.audit_summary = audit_summary
            audit.ai_summary = report.summary
            audit.recommendations = [r.to_dict() for r in report.priority_recommendations]
            audit.error_message = None
            audit.completed_at = datetime.now()

            for violation in report.violations:
                audit.violations.append(_violation_row(audit_id, violation))

        logger.info(
            f"Saved audit {audit_id}: {report.total_violations} violations, "
            f"score={report.overall_score}, confidence={report.overall_confidence}"
        )

    def mark_failed(self, audit_id: int, error_message: str):
        with self.db_manager.get_session() as session:
            session.execute(
                update(AccessibilityAudit)
                .where(AccessibilityAudit.id == audit_id)
                .values(
                    status=AuditStatus.FAILED.value,
                    error_message=error_message[:2000],
                    completed_at=datetime.now(),
                )
            )
        logger.warning(f"Audit {audit_id} marked failed: {error_message}")

    def list_ids_by_status(self, status: AuditStatus, limit: int = 5) -> List[int]:
        """Oldest audit ids in a given status."""
        with self.db_manager.get_session() as session:
            stmt = (
                select(AccessibilityAudit.id)
                .where(AccessibilityAudit.status == status.value)
                .order_by(AccessibilityAudit.created_at, AccessibilityAudit.id)
                .limit(limit)
            )
            return list(session.scalars(stmt).all())

    def reset_stalled(self, older_than: timedelta, exclude_ids: Optional[List[int]] = None) -> List[int]:
        """
        Move audits stuck in processing back to pending.

        Args:
            older_than: Processing time after which an audit counts as stalled
            exclude_ids: Audits known to be running in this process

        Returns:
            Ids of the audits that were reset
        """
        cutoff = datetime.now() - older_than
        exclude_ids = list(exclude_ids or [])

        with self.db_manager.get_session() as session:
            stmt = (
                select(AccessibilityAudit.id)
                .where(AccessibilityAudit.status == AuditStatus.PROCESSING.value)
                .where(AccessibilityAudit.started_at < cutoff)
            )
            if exclude_ids:
                stmt = stmt.where(AccessibilityAudit.id.not_in(exclude_ids))
            stalled = list(session.scalars(stmt).all())

            if stalled:
                session.execute(
                    update(AccessibilityAudit)
                    .where(AccessibilityAudit.id.in_(stalled))
                    .values(
                        status=AuditStatus.PENDING.value,
                        started_at=None,
                        error_message="Job was stalled and reset",
                    )
                )

        if stalled:
            logger.warning(f"Reset {len(stalled)} stalled audit(s) to pending: {stalled}")
        return stalled

    def count_by_status(self) -> Dict[str, int]:
        """Audit counts per status (every status present, possibly 0)."""
        counts = {status.value: 0 for status in AuditStatus}
        with self.db_manager.get_session() as session:
            rows = session.execute(
                select(AccessibilityAudit.status, func.count(AccessibilityAudit.id))
                .group_by(AccessibilityAudit.status)
            ).all()
        for status, count in rows:
            counts[status] = count
        return counts
