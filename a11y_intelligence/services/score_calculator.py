"""
Accessibility Score Calculator

Derives the overall accessibility score (0-100) from reconciled violations.

Scoring:
1. Start at 100
2. Deduct per violation: base(impact) * violation confidence / 100
   base: critical 25, serious 15, moderate 8, minor 3
3. Add consensus bonus: min(5, corroborated violations * 0.5)
4. Add pass bonus: min(passes * 0.2, 10)
5. Multiply by (0.7 + 0.3 * overall confidence / 100)
6. Clamp to [0, 100] and round half-up

Intermediate values are never rounded.

Usage:
    from a11y_intelligence.services.score_calculator import get_score_calculator

    score = get_score_calculator().calculate(violations, consensus_count=1,
                                             primary_passes=50, overall_confidence=51)
"""

from typing import List, Optional

from a11y_intelligence.config import ScoringConfig, get_scoring_config
from a11y_intelligence.models.violations import NormalizedViolation
from a11y_intelligence.utils.numeric import clamp, round_half_up
from runner.logging_setup import get_logger

logger = get_logger("score_calculator")


class ScoreCalculator:
    """Confidence-weighted accessibility score."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or get_scoring_config()

    def deduction_for(self, violation: NormalizedViolation) -> float:
        """Points deducted for one violation."""
        base = self.config.impact_deductions[violation.impact.value]
        return base * violation.confidence / 100

    def calculate(
        self,
        violations: List[NormalizedViolation],
        consensus_count: int,
        primary_passes: int,
        overall_confidence: int,
    ) -> int:
        """
        Calculate the accessibility score.

        Args:
            violations: Reconciled violations
            consensus_count: Number of violations detected by more than one tool
            primary_passes: Number of rules the primary tool reported as passing
            overall_confidence: Overall confidence from ConfidenceCalculator

        Returns:
            Score in [0, 100]
        """
        cfg = self.config
        score = 100.0

        for violation in violations:
            score -= self.deduction_for(violation)

        score += min(cfg.consensus_bonus_cap, max(0, consensus_count) * cfg.consensus_bonus_per_violation)
        score += min(max(0, primary_passes) * cfg.pass_bonus_per_rule, cfg.pass_bonus_cap)

        factor = cfg.confidence_floor_factor + (1 - cfg.confidence_floor_factor) * overall_confidence / 100
        score *= factor

        if not 0 <= score <= 100:
            logger.debug(f"Score {score:.2f} clamped to [0, 100]")

        return round_half_up(clamp(score))


_score_calculator_instance: Optional[ScoreCalculator] = None


def get_score_calculator(config: Optional[ScoringConfig] = None) -> ScoreCalculator:
    """Get or create the singleton ScoreCalculator instance."""
    global _score_calculator_instance

    if _score_calculator_instance is None or config is not None:
        _score_calculator_instance = ScoreCalculator(config)

    return _score_calculator_instance
