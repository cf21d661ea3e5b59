"""
Consensus Confidence Calculator

Computes the overall confidence (0-100) of a reconciled violation set.

Formula:
- No violations: 100
- Otherwise:
    consensus_ratio = corroborated violations / total violations
    coverage        = min(100, (primary passes + secondary findings) / 10)
    confidence      = round(50 + consensus_ratio * 30 + coverage * 0.2)

Rounding is half-up. All constants come from ScoringConfig.
"""

from typing import List, Optional

from a11y_intelligence.config import ScoringConfig, get_scoring_config
from a11y_intelligence.models.violations import NormalizedViolation
from a11y_intelligence.utils.numeric import clamp, round_half_up
from runner.logging_setup import get_logger

logger = get_logger("confidence_calculator")


class ConfidenceCalculator:
    """Overall consensus confidence of an audit."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or get_scoring_config()

    def calculate(
        self,
        violations: List[NormalizedViolation],
        primary_passes: int,
        secondary_total: int,
    ) -> int:
        """
        Calculate overall confidence.

        Args:
            violations: Reconciled violations
            primary_passes: Number of rules the primary tool reported as passing
            secondary_total: Total secondary findings, notices included

        Returns:
            Confidence in [0, 100]
        """
        if not violations:
            return 100

        cfg = self.config
        total = len(violations)
        consensus = sum(1 for v in violations if v.is_consensus)

        consensus_ratio = consensus / total
        coverage = min(cfg.coverage_cap, (max(0, primary_passes) + max(0, secondary_total)) / cfg.coverage_divisor)

        raw = cfg.confidence_base + consensus_ratio * cfg.consensus_weight + coverage * cfg.coverage_weight
        confidence = round_half_up(raw)

        if not 0 <= confidence <= 100:
            logger.warning(
                f"Confidence {confidence} out of range before clamping "
                f"(violations={total}, consensus={consensus}, coverage={coverage:.1f})"
            )

        return int(clamp(confidence))


_confidence_calculator_instance: Optional[ConfidenceCalculator] = None


def get_confidence_calculator(config: Optional[ScoringConfig] = None) -> ConfidenceCalculator:
    """Get or create the singleton ConfidenceCalculator instance."""
    global _confidence_calculator_instance

    if _confidence_calculator_instance is None or config is not None:
        _confidence_calculator_instance = ConfidenceCalculator(config)

    return _confidence_calculator_instance
