"""
Tests for the axe-core and Pa11y adapters.

Run with: python -m pytest tests/unit/test_scan_adapters.py -v
"""

from a11y_intelligence.config import ScoringConfig
from a11y_intelligence.models.violations import ImpactLevel, WcagLevel
from a11y_intelligence.services.scan_adapters import (
    AxeResultAdapter,
    Pa11yResultAdapter,
    format_selector,
    get_axe_adapter,
    get_pa11y_adapter,
    truncate_html,
)

CONTRAST_CODE = "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail"


class TestAxeAdapter:
    """axe-core violations -> candidates."""

    def test_one_candidate_per_rule_with_element_count(self, axe_violation):
        """Nodes of one rule coalesce into one candidate."""
        adapter = AxeResultAdapter(confidence=85)
        candidates = adapter.adapt([
            axe_violation("image-alt", selectors=("#a", "#b", "#c")),
        ])

        assert len(candidates) == 1
        candidate = candidates[0]
        assert candidate.rule_id == "image-alt"
        assert candidate.element_count == 3
        assert candidate.target == ("#a", "#b", "#c")
        assert candidate.selector == "#a, #b, #c"
        assert candidate.detected_by == ("axe-core",)
        assert candidate.confidence == 85

    def test_duplicate_rule_entries_coalesce(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85)
        candidates = adapter.adapt([
            axe_violation("label", selectors=("#a",)),
            axe_violation("label", selectors=("#b", "#a")),
        ])

        assert len(candidates) == 1
        assert candidates[0].element_count == 3
        assert candidates[0].target == ("#a", "#b")

    def test_target_preview_is_bounded(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85, target_preview_limit=2)
        candidate = adapter.adapt([axe_violation("list", selectors=("#a", "#b", "#c", "#d"))])[0]

        assert candidate.target == ("#a", "#b")
        assert candidate.element_count == 4

    def test_missing_nodes_default_selector(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85)
        candidate = adapter.adapt([axe_violation("region", selectors=())])[0]

        assert candidate.selector == "Multiple elements"
        assert candidate.html == ""
        assert candidate.element_count == 1

    def test_unknown_impact_defaults_to_moderate(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85)
        candidates = adapter.adapt([
            axe_violation("a", impact=None),
            axe_violation("b", impact="catastrophic"),
            axe_violation("c", impact="Critical"),
        ])

        assert [c.impact for c in candidates] == [ImpactLevel.MODERATE, ImpactLevel.MODERATE, ImpactLevel.CRITICAL]

    def test_html_is_truncated(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85, html_max_length=500)
        candidate = adapter.adapt([axe_violation("image-alt", html="x" * 800)])[0]

        assert len(candidate.html) == 500

    def test_wcag_data_from_tags(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85)
        candidate = adapter.adapt([
            axe_violation("color-contrast", tags=("cat.color", "wcag2aa", "wcag143")),
        ])[0]

        assert candidate.wcag_level == WcagLevel.AA
        assert [c.criterion for c in candidate.wcag_criteria] == ["1.4.3"]

    def test_help_url_generated_when_missing(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85)
        candidate = adapter.adapt([axe_violation("image-alt", helpUrl=None)])[0]

        assert candidate.help_url.endswith("/image-alt")

    def test_malformed_entries_are_skipped(self, axe_violation):
        adapter = AxeResultAdapter(confidence=85)
        candidates = adapter.adapt([None, "bogus", {"impact": "serious"}, axe_violation("list")])

        assert [c.rule_id for c in candidates] == ["list"]

    def test_none_input(self):
        assert AxeResultAdapter(confidence=85).adapt(None) == []

    def test_raw_data_kept_per_tool(self, axe_violation):
        raw = axe_violation("list")
        candidate = AxeResultAdapter(confidence=85).adapt([raw])[0]

        assert candidate.tool_data == {"axe-core": [raw]}


class TestPa11yAdapter:
    """Pa11y issues -> candidates."""

    def test_notices_are_dropped(self, pa11y_issue):
        adapter = Pa11yResultAdapter(confidence=75)
        candidates = adapter.adapt([
            pa11y_issue(CONTRAST_CODE, issue_type="notice"),
            pa11y_issue("WCAG2AA.Principle1.Guideline1_1.1_1_1.H37", issue_type="error"),
        ])

        assert [c.rule_id for c in candidates] == ["image-alt"]

    def test_type_maps_to_impact(self, pa11y_issue):
        adapter = Pa11yResultAdapter(confidence=75)
        candidates = adapter.adapt([
            pa11y_issue(CONTRAST_CODE, issue_type="error"),
            pa11y_issue("WCAG2AA.Principle1.Guideline1_3.1_3_1.H48", issue_type="warning"),
            pa11y_issue("WCAG2AA.Principle1.Guideline1_1.1_1_1.H37", issue_type="strange"),
        ])

        assert [c.impact for c in candidates] == [ImpactLevel.SERIOUS, ImpactLevel.MODERATE, ImpactLevel.MODERATE]

    def test_issues_of_same_rule_coalesce(self, pa11y_issue):
        adapter = Pa11yResultAdapter(confidence=75)
        candidates = adapter.adapt([
            pa11y_issue(CONTRAST_CODE, selector="#a"),
            pa11y_issue("WCAG2AA.Principle1.Guideline1_4.1_4_3.G145.Fail", selector="#b"),
        ])

        assert len(candidates) == 1
        assert candidates[0].rule_id == "color-contrast"
        assert candidates[0].element_count == 2
        assert candidates[0].target == ("#a", "#b")

    def test_candidate_fields(self, pa11y_issue):
        adapter = Pa11yResultAdapter(confidence=75)
        candidate = adapter.adapt([pa11y_issue(CONTRAST_CODE, message="Low contrast", context="<p>hi</p>")])[0]

        assert candidate.detected_by == ("pa11y",)
        assert candidate.confidence == 75
        assert candidate.description == "Low contrast"
        assert candidate.html == "<p>hi</p>"
        assert candidate.wcag_level == WcagLevel.AA
        assert candidate.wcag_criteria[0].criterion == "1.4.3"
        assert "dequeuniversity.com" in candidate.help_url

    def test_missing_selector_and_context(self):
        adapter = Pa11yResultAdapter(confidence=75)
        candidate = adapter.adapt([{"code": CONTRAST_CODE, "type": "error", "message": "m"}])[0]

        assert candidate.selector == "Multiple elements"
        assert candidate.html == ""
        assert candidate.target == ()

    def test_issue_without_code_is_skipped(self):
        adapter = Pa11yResultAdapter(confidence=75)
        assert adapter.adapt([{"type": "error", "message": "no code"}]) == []


class TestAdapterHelpers:
    """Selector formatting and factories."""

    def test_format_selector_nested_targets(self):
        assert format_selector(["#a"]) == "#a"
        assert format_selector([["iframe", "#inner"]]) == "iframe > #inner"
        assert format_selector("#plain") == "#plain"
        assert format_selector(None) == ""

    def test_truncate_html(self):
        assert truncate_html(None) == ""
        assert truncate_html("abc", limit=2) == "ab"

    def test_factories_use_configured_baselines(self):
        config = ScoringConfig(primary_confidence=80, secondary_confidence=70, corroborated_confidence=90)

        assert get_axe_adapter(config).confidence == 80
        assert get_pa11y_adapter(config).confidence == 70
