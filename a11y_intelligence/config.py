"""
Centralized configuration for the accessibility consensus engine.

All thresholds, limits, and tunable parameters for:
- Per-tool baseline and corroborated confidence
- Confidence and score heuristics
- Violation normalization limits
- LLM enrichment and audit scheduling

Import from here instead of hardcoding values in individual modules.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv

# Load environment
load_dotenv()


# ==============================================================================
# TOOL NAMES
# ==============================================================================

PRIMARY_TOOL = "axe-core"
SECONDARY_TOOL = "pa11y"


# ==============================================================================
# CONFIDENCE
# ==============================================================================

# Baseline confidence for a violation reported by a single tool
PRIMARY_CONFIDENCE = int(os.getenv('A11Y_PRIMARY_CONFIDENCE', '85'))
SECONDARY_CONFIDENCE = int(os.getenv('A11Y_SECONDARY_CONFIDENCE', '75'))

# Confidence once a second tool independently reports the same rule
CORROBORATED_CONFIDENCE = int(os.getenv('A11Y_CORROBORATED_CONFIDENCE', '95'))


# ==============================================================================
# NORMALIZATION
# ==============================================================================

HTML_MAX_LENGTH = int(os.getenv('A11Y_HTML_MAX_LENGTH', '500'))  # chars
TARGET_PREVIEW_LIMIT = int(os.getenv('A11Y_TARGET_PREVIEW_LIMIT', '10'))  # locators kept per violation
MULTIPLE_ELEMENTS_SELECTOR = "Multiple elements"


# ==============================================================================
# LLM ENRICHMENT
# ==============================================================================

LLM_MODEL = os.getenv('A11Y_LLM_MODEL', 'claude-sonnet-4-5')
LLM_MAX_TOKENS = int(os.getenv('A11Y_LLM_MAX_TOKENS', '1024'))
LLM_TEMPERATURE = float(os.getenv('A11Y_LLM_TEMPERATURE', '0.3'))
LLM_MAX_RETRIES = int(os.getenv('A11Y_LLM_MAX_RETRIES', '3'))

MAX_VIOLATIONS_TO_ENRICH = int(os.getenv('A11Y_MAX_VIOLATIONS_TO_ENRICH', '30'))
ENRICHMENT_MAX_WORKERS = int(os.getenv('A11Y_ENRICHMENT_MAX_WORKERS', '5'))

# Defaults filled in when enrichment fails
FALLBACK_EXPLANATION = "AI analysis temporarily unavailable"
FALLBACK_FIX_SUGGESTION = "Please refer to the help URL for guidance"
FALLBACK_SUMMARY = "Accessibility audit completed. AI summary temporarily unavailable."
RAW_EXPLANATION_LIMIT = 300  # chars kept when the reply is not JSON


# ==============================================================================
# AUDIT JOBS
# ==============================================================================

AUDIT_MAX_WORKERS = int(os.getenv('A11Y_AUDIT_MAX_WORKERS', '4'))
PENDING_BATCH_SIZE = int(os.getenv('A11Y_PENDING_BATCH_SIZE', '5'))
PENDING_POLL_SECONDS = int(os.getenv('A11Y_PENDING_POLL_SECONDS', '30'))
STALLED_SWEEP_SECONDS = int(os.getenv('A11Y_STALLED_SWEEP_SECONDS', '300'))
STALLED_AFTER_MINUTES = int(os.getenv('A11Y_STALLED_AFTER_MINUTES', '10'))
SHUTDOWN_TIMEOUT_SECONDS = int(os.getenv('A11Y_SHUTDOWN_TIMEOUT', '30'))


# ==============================================================================
# SCORING HEURISTICS
# ==============================================================================

@dataclass
class ScoringConfig:
    """Heuristic constants used by the confidence and score calculators."""

    # Confidence
    primary_confidence: int = PRIMARY_CONFIDENCE
    secondary_confidence: int = SECONDARY_CONFIDENCE
    corroborated_confidence: int = CORROBORATED_CONFIDENCE
    confidence_base: float = 50.0
    consensus_weight: float = 30.0        # points for a fully corroborated set
    coverage_divisor: float = 10.0        # (passes + secondary findings) / divisor
    coverage_cap: float = 100.0
    coverage_weight: float = 0.2

    # Score
    impact_deductions: Dict[str, float] = None
    consensus_bonus_per_violation: float = 0.5
    consensus_bonus_cap: float = 5.0
    pass_bonus_per_rule: float = 0.2
    pass_bonus_cap: float = 10.0
    confidence_floor_factor: float = 0.7  # score multiplier at zero confidence

    def __post_init__(self):
        """Initialize default impact deductions if not provided."""
        if self.impact_deductions is None:
            self.impact_deductions = {
                'critical': 25.0,
                'serious': 15.0,
                'moderate': 8.0,
                'minor': 3.0,
            }

    def validate(self) -> "ScoringConfig":
        """
        Check that the constants are coherent.

        Returns:
            self, so the call can be chained

        Raises:
            ValueError: If any constant is out of range
        """
        for name in ('primary_confidence', 'secondary_confidence', 'corroborated_confidence'):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be within 0-100, got {value}")

        baseline = max(self.primary_confidence, self.secondary_confidence)
        if self.corroborated_confidence <= baseline:
            raise ValueError(
                f"corroborated_confidence ({self.corroborated_confidence}) must be "
                f"higher than every single-tool baseline ({baseline})"
            )

        missing = {'critical', 'serious', 'moderate', 'minor'} - set(self.impact_deductions)
        if missing:
            raise ValueError(f"impact_deductions missing levels: {sorted(missing)}")

        if self.coverage_divisor <= 0:
            raise ValueError("coverage_divisor must be positive")

        if not 0 <= self.confidence_floor_factor <= 1:
            raise ValueError("confidence_floor_factor must be within 0-1")

        return self


_scoring_config_instance: Optional[ScoringConfig] = None


def get_scoring_config(config: Optional[ScoringConfig] = None) -> ScoringConfig:
    """
    Get or create the singleton ScoringConfig instance.

    Args:
        config: Optional custom configuration (replaces the current one)

    Returns:
        ScoringConfig instance
    """
    global _scoring_config_instance

    if _scoring_config_instance is None or config is not None:
        _scoring_config_instance = (config or ScoringConfig()).validate()

    return _scoring_config_instance
