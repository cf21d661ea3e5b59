"""
Tests for cross-tool violation reconciliation.

Run with: python -m pytest tests/unit/test_violation_reconciler.py -v
"""

from dataclasses import replace

import pytest

from a11y_intelligence.config import ScoringConfig
from a11y_intelligence.models.violations import ImpactLevel, NormalizedViolation, WcagLevel
from a11y_intelligence.services.scan_adapters import AxeResultAdapter, Pa11yResultAdapter
from a11y_intelligence.services.violation_reconciler import ViolationReconciler, get_violation_reconciler

CONTRAST_CODE = "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail"
IMAGE_ALT_CODE = "WCAG2AA.Principle1.Guideline1_1.1_1_1.H37"
UNMAPPED_CODE = "WCAG2AA.Principle2.Guideline2_4.2_4_4.H77,H78,H79,H80,H81"


@pytest.fixture
def reconciler(scoring_config):
    return ViolationReconciler(scoring_config)


@pytest.fixture
def axe():
    return AxeResultAdapter(confidence=85)


@pytest.fixture
def pa11y():
    return Pa11yResultAdapter(confidence=75)


def _by_rule(violations):
    return {v.rule_id: v for v in violations}


class TestReconcileOrder:
    """Merged set does not depend on which tool's list comes first."""

    def test_same_keys_tools_and_confidence_either_way(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        axe_candidates = axe.adapt([
            axe_violation("color-contrast"),
            axe_violation("label"),
        ])
        pa11y_candidates = pa11y.adapt([
            pa11y_issue(CONTRAST_CODE),
            pa11y_issue(IMAGE_ALT_CODE),
            pa11y_issue(UNMAPPED_CODE),
        ])

        forward = _by_rule(reconciler.reconcile(axe_candidates, pa11y_candidates))
        backward = _by_rule(reconciler.reconcile(pa11y_candidates, axe_candidates))

        assert forward.keys() == backward.keys()
        for rule_id in forward:
            assert set(forward[rule_id].detected_by) == set(backward[rule_id].detected_by)
            assert forward[rule_id].confidence == backward[rule_id].confidence

    def test_primary_first_keeps_primary_description(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        merged = reconciler.reconcile(
            axe.adapt([axe_violation("color-contrast", impact="serious")]),
            pa11y.adapt([pa11y_issue(CONTRAST_CODE, issue_type="warning", message="pa11y text")]),
        )

        assert merged[0].description == "color-contrast description"
        assert merged[0].impact == ImpactLevel.SERIOUS
        assert merged[0].detected_by == ("axe-core", "pa11y")


class TestDeduplication:
    """One violation per canonical rule."""

    def test_n_elements_one_violation(self, reconciler, axe, axe_violation):
        selectors = tuple(f"#item-{i}" for i in range(7))
        merged = reconciler.reconcile(axe.adapt([axe_violation("image-alt", selectors=selectors)]))

        assert len(merged) == 1
        assert merged[0].element_count == 7

    def test_repeated_candidates_of_one_tool_add_elements(self, reconciler, axe, axe_violation):
        first = axe.adapt([axe_violation("label", selectors=("#a", "#b"))])
        second = axe.adapt([axe_violation("label", selectors=("#c",))])

        merged = reconciler.reconcile(first, second)

        assert len(merged) == 1
        assert merged[0].element_count == 3
        assert merged[0].target == ("#a", "#b", "#c")
        assert merged[0].detected_by == ("axe-core",)
        assert merged[0].confidence == 85

    def test_corroborating_tool_does_not_add_elements(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        merged = reconciler.reconcile(
            axe.adapt([axe_violation("color-contrast", selectors=("#a", "#b"))]),
            pa11y.adapt([pa11y_issue(CONTRAST_CODE, selector="#a")]),
        )

        assert merged[0].element_count == 2

    def test_raw_tool_data_kept_for_both_tools(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        merged = reconciler.reconcile(
            axe.adapt([axe_violation("color-contrast")]),
            pa11y.adapt([pa11y_issue(CONTRAST_CODE)]),
        )

        assert set(merged[0].tool_data) == {"axe-core", "pa11y"}


class TestCorroboration:
    """Confidence after a second tool agrees."""

    def test_second_tool_raises_to_corroborated_value(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        merged = reconciler.reconcile(
            axe.adapt([axe_violation("color-contrast")]),
            pa11y.adapt([pa11y_issue(CONTRAST_CODE)]),
        )

        assert merged[0].confidence == 95
        assert merged[0].is_consensus

    def test_equal_corroborated_confidence_rejected(self):
        config = ScoringConfig(primary_confidence=98, secondary_confidence=75, corroborated_confidence=98)

        with pytest.raises(ValueError, match="corroborated_confidence"):
            config.validate()

    def test_corroboration_strictly_raises_confidence(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        axe_only = reconciler.reconcile(axe.adapt([axe_violation("color-contrast")]), [])
        both = reconciler.reconcile(
            axe.adapt([axe_violation("color-contrast")]),
            pa11y.adapt([pa11y_issue(CONTRAST_CODE)]),
        )

        assert both[0].confidence > axe_only[0].confidence

    def test_confidence_never_lowered(self, reconciler, axe_violation, pa11y_issue):
        merged = reconciler.reconcile(
            AxeResultAdapter(confidence=99).adapt([axe_violation("color-contrast")]),
            Pa11yResultAdapter(confidence=75).adapt([pa11y_issue(CONTRAST_CODE)]),
        )

        assert merged[0].confidence == 99

    def test_single_tool_keeps_baseline(self, reconciler, pa11y, pa11y_issue):
        merged = reconciler.reconcile([], pa11y.adapt([pa11y_issue(IMAGE_ALT_CODE)]))

        assert merged[0].confidence == 75
        assert merged[0].detected_by == ("pa11y",)

    def test_wcag_data_is_merged(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        merged = reconciler.reconcile(
            axe.adapt([axe_violation("color-contrast", tags=("wcag2a",))]),
            pa11y.adapt([pa11y_issue(CONTRAST_CODE)]),
        )

        assert merged[0].wcag_level == WcagLevel.AA
        assert [c.criterion for c in merged[0].wcag_criteria] == ["1.4.3"]


class TestUnmappedAndInformational:
    """Codes without a mapping and notice-level findings."""

    def test_unmapped_code_is_its_own_violation(self, reconciler, axe, pa11y, axe_violation, pa11y_issue):
        merged = _by_rule(reconciler.reconcile(
            axe.adapt([axe_violation("link-name")]),
            pa11y.adapt([pa11y_issue(UNMAPPED_CODE)]),
        ))

        assert set(merged) == {"link-name", UNMAPPED_CODE}
        assert merged[UNMAPPED_CODE].detected_by == ("pa11y",)

    def test_notice_candidates_are_skipped(self, reconciler, pa11y_issue):
        notice = NormalizedViolation(
            rule_id="color-contrast",
            description="notice",
            impact=ImpactLevel.MINOR,
            help_url="",
            detected_by=("pa11y",),
            confidence=75,
            tool_data={"pa11y": [pa11y_issue(CONTRAST_CODE, issue_type="notice")]},
        )

        assert reconciler.reconcile([notice]) == []

    def test_raw_pa11y_code_in_candidate_is_canonicalized(self, reconciler, axe, axe_violation):
        """A candidate still carrying a raw Pa11y code joins its axe rule."""
        axe_candidates = axe.adapt([axe_violation("image-alt")])
        raw = replace(axe_candidates[0], rule_id=IMAGE_ALT_CODE, detected_by=("pa11y",), confidence=75)

        merged = reconciler.reconcile(axe_candidates, [raw])

        assert len(merged) == 1
        assert merged[0].rule_id == "image-alt"
        assert merged[0].confidence == 95

    def test_empty_inputs(self, reconciler):
        assert reconciler.reconcile() == []
        assert reconciler.reconcile([], None) == []


def test_singleton_getter_replaced_by_custom_config():
    config = ScoringConfig(corroborated_confidence=99)
    assert get_violation_reconciler(config).config.corroborated_confidence == 99
    assert get_violation_reconciler() is get_violation_reconciler()
