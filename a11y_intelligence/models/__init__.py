# A11y Intelligence Models
# Data classes for normalized violations and consensus reports

from .violations import (
    ImpactLevel,
    WcagLevel,
    WcagCriterion,
    ViolationEnrichment,
    PriorityRecommendation,
    NormalizedViolation,
    PrimaryToolStats,
    SecondaryToolStats,
    ConsensusReport,
)

__all__ = [
    'ImpactLevel',
    'WcagLevel',
    'WcagCriterion',
    'ViolationEnrichment',
    'PriorityRecommendation',
    'NormalizedViolation',
    'PrimaryToolStats',
    'SecondaryToolStats',
    'ConsensusReport',
]
