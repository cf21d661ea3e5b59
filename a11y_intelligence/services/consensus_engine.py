"""
Consensus Engine

Runs the full consensus pipeline over one page's scan outputs:

    raw axe violations + raw Pa11y issues
        -> adapters (per-tool candidates)
        -> reconciler (one violation per canonical rule)
        -> confidence calculator
        -> score calculator
        -> ConsensusReport

The engine is pure: no I/O, no shared state, same input gives the same
report. A missing secondary run is passed as an empty list.

Usage:
    from a11y_intelligence.services.consensus_engine import get_consensus_engine

    engine = get_consensus_engine()
    report = engine.build_report_from_raw(axe_results, pa11y_issues)
    print(report.overall_score, report.overall_confidence)
"""

from typing import Any, Dict, List, Optional, Tuple

from a11y_intelligence.config import ScoringConfig, get_scoring_config
from a11y_intelligence.models.violations import (
    ConsensusReport,
    NormalizedViolation,
    PrimaryToolStats,
    SecondaryToolStats,
)
from a11y_intelligence.services.audit_summary import primary_stats_from_results, secondary_stats_from_issues
from a11y_intelligence.services.confidence_calculator import ConfidenceCalculator
from a11y_intelligence.services.scan_adapters import get_axe_adapter, get_pa11y_adapter
from a11y_intelligence.services.score_calculator import ScoreCalculator
from a11y_intelligence.services.violation_reconciler import ViolationReconciler
from runner.logging_setup import get_logger

logger = get_logger("consensus_engine")


class ConsensusEngine:
    """
    Multi-tool accessibility consensus engine.

    Features:
    - Normalizes axe-core and Pa11y findings
    - Reconciles them into one violation per canonical rule
    - Scores cross-tool confidence and overall accessibility
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        """
        Initialize engine.

        Args:
            config: Scoring configuration (uses the shared config if not provided)
        """
        self.config = (config or get_scoring_config()).validate()
        self.axe_adapter = get_axe_adapter(self.config)
        self.pa11y_adapter = get_pa11y_adapter(self.config)
        self.reconciler = ViolationReconciler(self.config)
        self.confidence_calculator = ConfidenceCalculator(self.config)
        self.score_calculator = ScoreCalculator(self.config)

    def build_report(
        self,
        primary_violations: Optional[List[Dict[str, Any]]],
        secondary_issues: Optional[List[Dict[str, Any]]],
        primary_stats: Optional[PrimaryToolStats] = None,
        secondary_stats: Optional[SecondaryToolStats] = None,
        secondary_ran: bool = True,
    ) -> ConsensusReport:
        """
        Build a consensus report from raw tool findings.

        Args:
            primary_violations: axe-core `violations` list
            secondary_issues: Pa11y issues list (notices included; [] if the run failed)
            primary_stats: axe-core totals (passes drive coverage and pass bonus)
            secondary_stats: Pa11y totals (derived from secondary_issues if omitted)
            secondary_ran: False when the Pa11y run failed and was skipped

        Returns:
            ConsensusReport
        """
        secondary_issues = secondary_issues or []
        primary_stats = primary_stats or PrimaryToolStats(violations=len(primary_violations or []))
        secondary_stats = secondary_stats or secondary_stats_from_issues(secondary_issues)

        primary_candidates = self.axe_adapter.adapt(primary_violations)
        secondary_candidates = self.pa11y_adapter.adapt(secondary_issues)

        violations = self.reconciler.reconcile(primary_candidates, secondary_candidates)

        tools_used = (self.axe_adapter.tool_name,)
        if secondary_ran:
            tools_used += (self.pa11y_adapter.tool_name,)

        return self.score(violations, primary_stats, secondary_stats, tools_used=tools_used)

    def build_report_from_raw(
        self,
        axe_results: Optional[Dict[str, Any]],
        pa11y_issues: Optional[List[Dict[str, Any]]],
        secondary_ran: bool = True,
    ) -> ConsensusReport:
        """
        Build a consensus report from a full axe-core results object.

        Args:
            axe_results: axe-core results (violations, passes, incomplete, inapplicable)
            pa11y_issues: Pa11y issues list
            secondary_ran: False when the Pa11y run failed and was skipped

        Returns:
            ConsensusReport
        """
        axe_results = axe_results or {}
        return self.build_report(
            primary_violations=axe_results.get('violations') or [],
            secondary_issues=pa11y_issues,
            primary_stats=primary_stats_from_results(axe_results),
            secondary_ran=secondary_ran,
        )

    def score(
        self,
        violations: List[NormalizedViolation],
        primary_stats: PrimaryToolStats,
        secondary_stats: SecondaryToolStats,
        tools_used: Optional[Tuple[str, ...]] = None,
    ) -> ConsensusReport:
        """
        Score an already reconciled violation list.

        Args:
            violations: Reconciled violations
            primary_stats: axe-core totals
            secondary_stats: Pa11y totals
            tools_used: Tools that produced results (both tools if omitted)

        Returns:
            ConsensusReport
        """
        consensus_count = sum(1 for v in violations if v.is_consensus)
        unique_count = len(violations) - consensus_count

        confidence = self.confidence_calculator.calculate(
            violations,
            primary_passes=primary_stats.passes,
            secondary_total=secondary_stats.total,
        )
        score = self.score_calculator.calculate(
            violations,
            consensus_count=consensus_count,
            primary_passes=primary_stats.passes,
            overall_confidence=confidence,
        )

        if tools_used is None:
            tools_used = (self.axe_adapter.tool_name, self.pa11y_adapter.tool_name)

        logger.info(
            f"Consensus report: {len(violations)} violations "
            f"({consensus_count} corroborated, {unique_count} single-tool), "
            f"confidence={confidence}, score={score}"
        )

        return ConsensusReport(
            violations=tuple(violations),
            consensus_count=consensus_count,
            unique_count=unique_count,
            overall_confidence=confidence,
            overall_score=score,
            primary_stats=primary_stats,
            secondary_stats=secondary_stats,
            tools_used=tuple(tools_used),
        )


_consensus_engine_instance: Optional[ConsensusEngine] = None


def get_consensus_engine(config: Optional[ScoringConfig] = None) -> ConsensusEngine:
    """
    Get or create the singleton ConsensusEngine instance.

    Args:
        config: Optional custom configuration

    Returns:
        ConsensusEngine instance
    """
    global _consensus_engine_instance

    if _consensus_engine_instance is None or config is not None:
        _consensus_engine_instance = ConsensusEngine(config)

    return _consensus_engine_instance
