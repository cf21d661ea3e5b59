"""
A11y Intelligence Services

This module contains the consensus core:
- rule_mapping: Pa11y code, WCAG tag and help URL tables
- scan_adapters: axe-core and Pa11y output -> NormalizedViolation candidates
- violation_reconciler: cross-tool merge by canonical rule id
- confidence_calculator: overall consensus confidence
- score_calculator: confidence-weighted accessibility score
- consensus_engine: end-to-end pipeline producing a ConsensusReport
- audit_summary: counts, breakdowns and compliance estimates

All services are synchronous and free of I/O.
"""

from .rule_mapping import map_secondary_code, help_url_for, levels_from_tags, criteria_from_tags
from .scan_adapters import AxeResultAdapter, Pa11yResultAdapter, get_axe_adapter, get_pa11y_adapter
from .violation_reconciler import ViolationReconciler, get_violation_reconciler
from .confidence_calculator import ConfidenceCalculator, get_confidence_calculator
from .score_calculator import ScoreCalculator, get_score_calculator
from .consensus_engine import ConsensusEngine, get_consensus_engine
from .audit_summary import build_audit_summary, count_by_impact, wcag_compliance

__all__ = [
    'map_secondary_code',
    'help_url_for',
    'levels_from_tags',
    'criteria_from_tags',
    'AxeResultAdapter',
    'Pa11yResultAdapter',
    'get_axe_adapter',
    'get_pa11y_adapter',
    'ViolationReconciler',
    'get_violation_reconciler',
    'ConfidenceCalculator',
    'get_confidence_calculator',
    'ScoreCalculator',
    'get_score_calculator',
    'ConsensusEngine',
    'get_consensus_engine',
    'build_audit_summary',
    'count_by_impact',
    'wcag_compliance',
]
