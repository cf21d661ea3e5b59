"""
Audit Summary

Derived counts and breakdowns over scan output and consensus reports,
used by the report layer, the persisted audit record and the LLM summary
prompt.

Features:
- Tool run totals from raw output
- Violation counts by impact
- WCAG conformance tag and axe category breakdowns
- WCAG 2.1 A/AA compliance percentage with missing criteria
- Compliance risk level
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from a11y_intelligence.models.violations import (
    ConsensusReport,
    ImpactLevel,
    NormalizedViolation,
    PrimaryToolStats,
    SecondaryToolStats,
)
from a11y_intelligence.services.rule_mapping import CATEGORY_TAGS, CONFORMANCE_TAGS, WCAG21_AA_CRITERIA
from a11y_intelligence.utils.numeric import round_half_up


def _count(value: Any) -> int:
    return len(value) if isinstance(value, list) else 0


def primary_stats_from_results(axe_results: Optional[Dict[str, Any]]) -> PrimaryToolStats:
    """Totals of an axe-core results object (missing lists count as 0)."""
    axe_results = axe_results or {}
    return PrimaryToolStats(
        passes=_count(axe_results.get('passes')),
        violations=_count(axe_results.get('violations')),
        incomplete=_count(axe_results.get('incomplete')),
        inapplicable=_count(axe_results.get('inapplicable')),
    )


def secondary_stats_from_issues(issues: Optional[List[Dict[str, Any]]]) -> SecondaryToolStats:
    """Error / warning / notice counts of a Pa11y issue list."""
    errors = warnings = notices = 0
    for issue in issues or []:
        if not isinstance(issue, dict):
            continue
        issue_type = str(issue.get('type') or '').lower()
        if issue_type == 'error':
            errors += 1
        elif issue_type == 'warning':
            warnings += 1
        elif issue_type == 'notice':
            notices += 1
    return SecondaryToolStats(errors=errors, warnings=warnings, notices=notices)


def count_by_impact(violations: List[NormalizedViolation]) -> Dict[str, int]:
    """Count violations per impact level (every level present, possibly 0)."""
    counts = {level.value: 0 for level in ImpactLevel}
    for violation in violations:
        counts[violation.impact.value] += 1
    return counts


def count_by_tool(violations: List[NormalizedViolation]) -> Dict[str, int]:
    """Count violations each tool took part in detecting."""
    counts: Dict[str, int] = {}
    for violation in violations:
        for tool in violation.detected_by:
            counts[tool] = counts.get(tool, 0) + 1
    return counts


def _tag_list(violation: Dict[str, Any]) -> List[str]:
    """Return the axe tags of a raw violation; anything but a list counts as no tags."""
    tags = violation.get('tags')
    return tags if isinstance(tags, (list, tuple)) else []


def wcag_conformance_breakdown(axe_violations: Optional[List[Dict[str, Any]]]) -> Dict[str, int]:
    """Count raw axe violations per conformance tag (wcag2a ... section508)."""
    breakdown = {tag: 0 for tag in CONFORMANCE_TAGS}
    for violation in axe_violations or []:
        if not isinstance(violation, dict):
            continue
        tags = _tag_list(violation)
        for tag in CONFORMANCE_TAGS:
            if tag in tags:
                breakdown[tag] += 1
    return breakdown


def category_breakdown(axe_violations: Optional[List[Dict[str, Any]]]) -> Dict[str, int]:
    """Count raw axe violations per `cat.*` tag; categories with no violations are omitted."""
    breakdown: Dict[str, int] = {}
    for category in CATEGORY_TAGS:
        count = sum(
            1 for violation in axe_violations or []
            if isinstance(violation, dict) and category in _tag_list(violation)
        )
        if count:
            breakdown[category.replace('cat.', '')] = count
    return breakdown


def top_violations(report: ConsensusReport, limit: int = 5, consensus_only: bool = False) -> List[NormalizedViolation]:
    """
    Most severe violations of a report.

    Ordered by impact, then corroboration, then affected element count.
    """
    violations = [v for v in report.violations if v.is_consensus or not consensus_only]
    violations.sort(key=lambda v: (-v.impact.rank, -len(v.detected_by), -v.element_count))
    return violations[:limit]


@dataclass
class ComplianceSnapshot:
    """WCAG 2.1 A/AA compliance estimate for one audit."""
    percentage: int
    violated_criteria: List[str] = field(default_factory=list)
    missing_criteria: List[str] = field(default_factory=list)  # names of violated criteria
    critical_gaps: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "percentage": self.percentage,
            "violated_criteria": self.violated_criteria,
            "missing_criteria": self.missing_criteria,
            "critical_gaps": self.critical_gaps,
        }


def wcag_compliance(violations: List[NormalizedViolation]) -> ComplianceSnapshot:
    """
    Share of tracked WCAG 2.1 A/AA success criteria with no violation.

    Args:
        violations: Reconciled violations

    Returns:
        ComplianceSnapshot (percentage rounded half-up)
    """
    violated = []
    critical_gaps = 0

    for violation in violations:
        tracked = [c.criterion for c in violation.wcag_criteria if c.criterion in WCAG21_AA_CRITERIA]
        for criterion in tracked:
            if criterion not in violated:
                violated.append(criterion)
        if tracked and violation.impact == ImpactLevel.CRITICAL:
            critical_gaps += 1

    total = len(WCAG21_AA_CRITERIA)
    compliant = total - len(violated)
    percentage = round_half_up(compliant * 100 / total)

    ordered = [c for c in WCAG21_AA_CRITERIA if c in violated]
    return ComplianceSnapshot(
        percentage=percentage,
        violated_criteria=ordered,
        missing_criteria=[WCAG21_AA_CRITERIA[c][0] for c in ordered],
        critical_gaps=critical_gaps,
    )


def compliance_risk(impact_counts: Dict[str, int]) -> str:
    """
    Legal exposure level from impact counts.

    Returns:
        "high" with any critical or more than 3 serious violations,
        "medium" with any serious or more than 10 violations in total,
        "low" otherwise
    """
    critical = impact_counts.get('critical', 0)
    serious = impact_counts.get('serious', 0)
    total = sum(impact_counts.values())

    if critical > 0 or serious > 3:
        return "high"
    if serious > 0 or total > 10:
        return "medium"
    return "low"


def build_audit_summary(report: ConsensusReport, axe_violations: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """
    Flat summary of a report for persistence and prompts.

    Args:
        report: Consensus report
        axe_violations: Raw axe violations (for tag breakdowns), optional

    Returns:
        Dict with counts, breakdowns, compliance and risk
    """
    impact_counts = count_by_impact(list(report.violations))
    return {
        "total_violations": report.total_violations,
        "impact_counts": impact_counts,
        "tool_counts": count_by_tool(list(report.violations)),
        "consensus_count": report.consensus_count,
        "unique_count": report.unique_count,
        "overall_confidence": report.overall_confidence,
        "overall_score": report.overall_score,
        "wcag_breakdown": wcag_conformance_breakdown(axe_violations),
        "category_breakdown": category_breakdown(axe_violations),
        "compliance": wcag_compliance(list(report.violations)).to_dict(),
        "risk": compliance_risk(impact_counts),
        "primary_stats": report.primary_stats.to_dict(),
        "secondary_stats": report.secondary_stats.to_dict(),
    }
