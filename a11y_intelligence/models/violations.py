"""
Violation and Consensus Report Models

Dataclasses shared by the adapters, reconciler, calculators and the
persistence layer.

Models:
- ImpactLevel: critical > serious > moderate > minor
- WcagLevel: AAA > AA > A > Unknown
- WcagCriterion: one WCAG success criterion (e.g. 1.4.3, level AA, guideline 1.4)
- NormalizedViolation: one canonical rule violation on a page, possibly
  reported by several tools
- PrimaryToolStats / SecondaryToolStats: raw totals of each tool run
- PriorityRecommendation: one remediation recommendation for a report
- ConsensusReport: the reconciled violations with confidence and score

NormalizedViolation and ConsensusReport are frozen: once reconciliation is
done, a report is an immutable snapshot. Enrichment produces a new report.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class ImpactLevel(Enum):
    """Severity of a violation, as reported by the tool."""
    CRITICAL = "critical"    # Blocks access for some users
    SERIOUS = "serious"      # Severe barrier
    MODERATE = "moderate"    # Some difficulty
    MINOR = "minor"          # Annoyance

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return _IMPACT_RANKS[self]

    @classmethod
    def parse(cls, label: Optional[str], default: "ImpactLevel" = None) -> "ImpactLevel":
        """
        Parse a tool impact label.

        Args:
            label: Impact label (case-insensitive), may be None
            default: Returned for missing or unrecognized labels (MODERATE)

        Returns:
            ImpactLevel
        """
        if default is None:
            default = cls.MODERATE
        if not isinstance(label, str):
            return default
        try:
            return cls(label.strip().lower())
        except ValueError:
            return default


_IMPACT_RANKS = {
    ImpactLevel.CRITICAL: 4,
    ImpactLevel.SERIOUS: 3,
    ImpactLevel.MODERATE: 2,
    ImpactLevel.MINOR: 1,
}


class WcagLevel(Enum):
    """WCAG conformance level."""
    A = "A"
    AA = "AA"
    AAA = "AAA"
    UNKNOWN = "Unknown"

    @property
    def rank(self) -> int:
        return _WCAG_LEVEL_RANKS[self]

    @classmethod
    def strictest(cls, levels: Iterable["WcagLevel"]) -> "WcagLevel":
        """Return the strictest level in levels, UNKNOWN when empty."""
        best = cls.UNKNOWN
        for level in levels:
            if level.rank > best.rank:
                best = level
        return best


_WCAG_LEVEL_RANKS = {
    WcagLevel.UNKNOWN: 0,
    WcagLevel.A: 1,
    WcagLevel.AA: 2,
    WcagLevel.AAA: 3,
}


@dataclass(frozen=True)
class WcagCriterion:
    """A WCAG success criterion referenced by a violation."""
    criterion: str          # e.g. "1.4.3"
    level: WcagLevel
    guideline: str          # e.g. "1.4"

    def to_dict(self) -> Dict[str, str]:
        return {
            "criterion": self.criterion,
            "level": self.level.value,
            "guideline": self.guideline,
        }


@dataclass(frozen=True)
class ViolationEnrichment:
    """Human-oriented guidance attached to a violation after reconciliation."""
    explanation: str
    fix_suggestion: str
    code_example: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "explanation": self.explanation,
            "fix_suggestion": self.fix_suggestion,
            "code_example": self.code_example,
        }


@dataclass(frozen=True)
class PriorityRecommendation:
    """One prioritized remediation recommendation for a report."""
    title: str
    description: str = ""
    impact: ImpactLevel = ImpactLevel.MODERATE
    effort: str = "medium"     # low, medium, high

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "impact": self.impact.value,
            "effort": self.effort,
        }


@dataclass(frozen=True)
class NormalizedViolation:
    """
    Canonical violation record.

    One instance per canonical rule per page. Multiple matched elements of
    the same rule are coalesced (element_count), and multiple tools reporting
    the same rule are listed in detected_by.
    """
    rule_id: str
    description: str
    impact: ImpactLevel
    help_url: str
    detected_by: Tuple[str, ...]
    confidence: int
    wcag_criteria: Tuple[WcagCriterion, ...] = ()
    wcag_level: WcagLevel = WcagLevel.UNKNOWN
    selector: str = "Multiple elements"
    html: str = ""
    target: Tuple[str, ...] = ()
    element_count: int = 1
    tool_data: Mapping[str, Any] = field(default_factory=dict, compare=False)
    enrichment: Optional[ViolationEnrichment] = None

    def __post_init__(self):
        if not self.detected_by:
            raise ValueError(f"Violation {self.rule_id!r} must be detected by at least one tool")
        if not 0 <= self.confidence <= 100:
            raise ValueError(f"Violation {self.rule_id!r} confidence out of range: {self.confidence}")
        if self.element_count < 1:
            raise ValueError(f"Violation {self.rule_id!r} element_count must be >= 1")

    @property
    def is_consensus(self) -> bool:
        """True when more than one tool independently reported this rule."""
        return len(self.detected_by) > 1

    def with_enrichment(self, enrichment: ViolationEnrichment) -> "NormalizedViolation":
        """Return a copy with the enrichment slot filled."""
        return replace(self, enrichment=enrichment)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "description": self.description,
            "impact": self.impact.value,
            "help_url": self.help_url,
            "detected_by": list(self.detected_by),
            "confidence": self.confidence,
            "wcag_criteria": [c.to_dict() for c in self.wcag_criteria],
            "wcag_level": self.wcag_level.value,
            "selector": self.selector,
            "html": self.html,
            "target": list(self.target),
            "element_count": self.element_count,
            "enrichment": self.enrichment.to_dict() if self.enrichment else None,
        }


@dataclass(frozen=True)
class PrimaryToolStats:
    """Totals from the primary (axe-core) run."""
    passes: int = 0
    violations: int = 0
    incomplete: int = 0
    inapplicable: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "passes": self.passes,
            "violations": self.violations,
            "incomplete": self.incomplete,
            "inapplicable": self.inapplicable,
        }


@dataclass(frozen=True)
class SecondaryToolStats:
    """Totals from the secondary (Pa11y) run, notices included."""
    errors: int = 0
    warnings: int = 0
    notices: int = 0

    @property
    def total(self) -> int:
        return self.errors + self.warnings + self.notices

    def to_dict(self) -> Dict[str, int]:
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "notices": self.notices,
            "total": self.total,
        }


@dataclass(frozen=True)
class ConsensusReport:
    """Result of one consensus run over a page's scan outputs."""
    violations: Tuple[NormalizedViolation, ...]
    consensus_count: int
    unique_count: int
    overall_confidence: int
    overall_score: int
    primary_stats: PrimaryToolStats = field(default_factory=PrimaryToolStats)
    secondary_stats: SecondaryToolStats = field(default_factory=SecondaryToolStats)
    tools_used: Tuple[str, ...] = ()
    summary: Optional[str] = None
    priority_recommendations: Tuple[PriorityRecommendation, ...] = ()

    @property
    def total_violations(self) -> int:
        return len(self.violations)

    def get(self, rule_id: str) -> Optional[NormalizedViolation]:
        """Look up a violation by canonical rule id."""
        for violation in self.violations:
            if violation.rule_id == rule_id:
                return violation
        return None

    def with_enrichments(
        self,
        enrichments: Mapping[str, ViolationEnrichment],
        summary: Optional[str] = None,
        priority_recommendations: Optional[List[PriorityRecommendation]] = None,
    ) -> "ConsensusReport":
        """
        Return a copy with enrichment merged in.

        Args:
            enrichments: rule_id -> enrichment; violations not listed are kept as-is
            summary: Optional executive summary
            priority_recommendations: Optional ordered recommendations

        Returns:
            New ConsensusReport (scores and counts unchanged)
        """
        violations = tuple(
            v.with_enrichment(enrichments[v.rule_id]) if v.rule_id in enrichments else v
            for v in self.violations
        )
        return replace(
            self,
            violations=violations,
            summary=summary if summary is not None else self.summary,
            priority_recommendations=(
                tuple(priority_recommendations)
                if priority_recommendations is not None
                else self.priority_recommendations
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violations": [v.to_dict() for v in self.violations],
            "total_violations": self.total_violations,
            "consensus_count": self.consensus_count,
            "unique_count": self.unique_count,
            "overall_confidence": self.overall_confidence,
            "overall_score": self.overall_score,
            "primary_stats": self.primary_stats.to_dict(),
            "secondary_stats": self.secondary_stats.to_dict(),
            "tools_used": list(self.tools_used),
            "summary": self.summary,
            "priority_recommendations": [r.to_dict() for r in self.priority_recommendations],
        }
