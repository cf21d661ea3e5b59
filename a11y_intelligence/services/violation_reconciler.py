"""
Violation Reconciler

Merges per-tool candidate lists into one violation per canonical rule.

Rules:
- Candidates are keyed by canonical rule id (after Pa11y code mapping)
- The first candidate seen for a key keeps its description, impact,
  help URL, html and selector
- A candidate from a tool not yet in detected_by appends that tool and raises
  confidence to the corroborated value (never lowers it)
- A candidate from a tool already in detected_by only adds elements
- Informational findings are skipped

The resulting keys, detected_by sets and confidences do not depend on the
order in which candidate lists are supplied. Pass the primary tool first to
have its descriptions win.

Usage:
    from a11y_intelligence.services.violation_reconciler import get_violation_reconciler

    merged = get_violation_reconciler().reconcile(axe_candidates, pa11y_candidates)
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional

from a11y_intelligence.config import MULTIPLE_ELEMENTS_SELECTOR, TARGET_PREVIEW_LIMIT, ScoringConfig, get_scoring_config
from a11y_intelligence.models.violations import NormalizedViolation, WcagLevel
from a11y_intelligence.services.rule_mapping import INFORMATIONAL_LABELS, map_secondary_code
from runner.logging_setup import get_logger

logger = get_logger("violation_reconciler")


class ViolationReconciler:
    """
    Cross-tool violation reconciler.
    """

    def __init__(self, config: Optional[ScoringConfig] = None, target_preview_limit: int = TARGET_PREVIEW_LIMIT):
        """
        Initialize reconciler.

        Args:
            config: Scoring configuration (corroborated confidence)
            target_preview_limit: Max locators kept per merged violation
        """
        self.config = config or get_scoring_config()
        self.target_preview_limit = target_preview_limit

    def reconcile(self, *candidate_lists: List[NormalizedViolation]) -> List[NormalizedViolation]:
        """
        Merge candidate lists.

        Args:
            *candidate_lists: One list per tool run, primary first

        Returns:
            Reconciled violations in first-seen order
        """
        merged: Dict[str, NormalizedViolation] = {}
        skipped = 0

        for candidates in candidate_lists:
            for candidate in candidates or []:
                if self._is_informational(candidate):
                    skipped += 1
                    continue

                key = map_secondary_code(candidate.rule_id) or candidate.rule_id
                existing = merged.get(key)

                if existing is None:
                    merged[key] = candidate if key == candidate.rule_id else replace(candidate, rule_id=key)
                else:
                    merged[key] = self._merge(existing, candidate)

        if skipped:
            logger.debug(f"Skipped {skipped} informational candidate(s)")

        violations = list(merged.values())
        consensus = sum(1 for v in violations if v.is_consensus)
        logger.debug(f"Reconciled {len(violations)} violation(s), {consensus} corroborated")
        return violations

    def _merge(self, existing: NormalizedViolation, candidate: NormalizedViolation) -> NormalizedViolation:
        """Fold candidate into existing; existing keeps its descriptive fields."""
        new_tools = [tool for tool in candidate.detected_by if tool not in existing.detected_by]
        detected_by = existing.detected_by + tuple(new_tools)

        confidence = existing.confidence
        if new_tools:
            confidence = max(existing.confidence, candidate.confidence, self.config.corroborated_confidence)

        tool_data: Dict[str, Any] = dict(existing.tool_data)
        for tool, data in candidate.tool_data.items():
            if tool in tool_data and isinstance(tool_data[tool], list) and isinstance(data, list):
                tool_data[tool] = tool_data[tool] + data
            else:
                tool_data.setdefault(tool, data)

        # The same tool reporting the rule again means more affected elements
        element_count = existing.element_count
        target = existing.target
        if not new_tools:
            element_count += candidate.element_count
            combined = list(existing.target)
            for selector in candidate.target:
                if selector not in combined:
                    combined.append(selector)
            target = tuple(combined[:self.target_preview_limit])

        criteria = list(existing.wcag_criteria)
        known = {c.criterion for c in criteria}
        criteria.extend(c for c in candidate.wcag_criteria if c.criterion not in known)

        return replace(
            existing,
            detected_by=detected_by,
            confidence=confidence,
            tool_data=tool_data,
            element_count=element_count,
            target=target,
            selector=", ".join(target) or existing.selector or MULTIPLE_ELEMENTS_SELECTOR,
            html=existing.html or candidate.html,
            wcag_criteria=tuple(criteria),
            wcag_level=WcagLevel.strictest([existing.wcag_level, candidate.wcag_level]),
        )

    @staticmethod
    def _is_informational(candidate: NormalizedViolation) -> bool:
        """True when every raw finding behind the candidate is a notice."""
        labels = []
        for findings in candidate.tool_data.values():
            for finding in findings if isinstance(findings, list) else [findings]:
                if isinstance(finding, dict):
                    label = finding.get('type') or finding.get('impact')
                    labels.append(label.strip().lower() if isinstance(label, str) else None)
        return bool(labels) and all(label in INFORMATIONAL_LABELS for label in labels)


_violation_reconciler_instance: Optional[ViolationReconciler] = None


def get_violation_reconciler(config: Optional[ScoringConfig] = None) -> ViolationReconciler:
    """
    Get or create the singleton ViolationReconciler instance.

    Args:
        config: Optional custom configuration

    Returns:
        ViolationReconciler instance
    """
    global _violation_reconciler_instance

    if _violation_reconciler_instance is None or config is not None:
        _violation_reconciler_instance = ViolationReconciler(config)

    return _violation_reconciler_instance
