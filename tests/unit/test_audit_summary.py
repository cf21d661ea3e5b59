"""
Tests for audit summary helpers (counts, breakdowns, compliance, risk).

Run with: python -m pytest tests/unit/test_audit_summary.py -v
"""

import pytest

from a11y_intelligence.models.violations import ImpactLevel, NormalizedViolation, WcagCriterion, WcagLevel
from a11y_intelligence.services.audit_summary import (
    build_audit_summary,
    category_breakdown,
    compliance_risk,
    count_by_impact,
    count_by_tool,
    primary_stats_from_results,
    secondary_stats_from_issues,
    top_violations,
    wcag_compliance,
    wcag_conformance_breakdown,
)

CONTRAST_CODE = "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail"


def make_violation(rule_id, impact=ImpactLevel.SERIOUS, tools=("axe-core",), criteria=(), element_count=1):
    return NormalizedViolation(
        rule_id=rule_id,
        description=rule_id,
        impact=impact,
        help_url="",
        detected_by=tools,
        confidence=95 if len(tools) > 1 else 85,
        wcag_criteria=tuple(WcagCriterion(c, WcagLevel.AA, c.rsplit('.', 1)[0]) for c in criteria),
        element_count=element_count,
    )


class TestToolStats:
    """Totals of raw tool output."""

    def test_primary_stats(self, axe_results, axe_violation):
        stats = primary_stats_from_results(axe_results([axe_violation("list")], passes=12, incomplete=2, inapplicable=30))

        assert stats.passes == 12
        assert stats.violations == 1
        assert stats.incomplete == 2
        assert stats.inapplicable == 30

    def test_primary_stats_missing_lists(self):
        stats = primary_stats_from_results({"passes": None})
        assert stats.passes == 0
        assert primary_stats_from_results(None).violations == 0

    def test_secondary_stats(self, pa11y_issue):
        stats = secondary_stats_from_issues([
            pa11y_issue(CONTRAST_CODE, issue_type="error"),
            pa11y_issue(CONTRAST_CODE, issue_type="error"),
            pa11y_issue(CONTRAST_CODE, issue_type="warning"),
            pa11y_issue(CONTRAST_CODE, issue_type="notice"),
            "junk",
        ])

        assert (stats.errors, stats.warnings, stats.notices) == (2, 1, 1)
        assert stats.total == 4


class TestCounts:
    """Counts over reconciled violations."""

    def test_count_by_impact_has_every_level(self):
        counts = count_by_impact([
            make_violation("a", ImpactLevel.CRITICAL),
            make_violation("b", ImpactLevel.CRITICAL),
            make_violation("c", ImpactLevel.MINOR),
        ])

        assert counts == {"critical": 2, "serious": 0, "moderate": 0, "minor": 1}

    def test_count_by_tool(self):
        counts = count_by_tool([
            make_violation("a", tools=("axe-core", "pa11y")),
            make_violation("b", tools=("pa11y",)),
        ])

        assert counts == {"axe-core": 1, "pa11y": 2}


class TestTagBreakdowns:
    """Raw axe tag breakdowns."""

    def test_conformance_breakdown(self, axe_violation):
        breakdown = wcag_conformance_breakdown([
            axe_violation("a", tags=("wcag2a", "wcag111")),
            axe_violation("b", tags=("wcag2aa", "section508")),
            axe_violation("c", tags=("wcag2aa",)),
            None,
        ])

        assert breakdown["wcag2a"] == 1
        assert breakdown["wcag2aa"] == 2
        assert breakdown["section508"] == 1
        assert breakdown["wcag22aa"] == 0

    def test_category_breakdown_omits_empty(self, axe_violation):
        breakdown = category_breakdown([
            axe_violation("a", tags=("cat.color",)),
            axe_violation("b", tags=("cat.color", "cat.forms")),
        ])

        assert breakdown == {"color": 2, "forms": 1}

    def test_string_tags_are_ignored(self):
        violations = [{"id": "odd", "tags": "wcag2aa cat.color"}]

        assert wcag_conformance_breakdown(violations)["wcag2a"] == 0
        assert wcag_conformance_breakdown(violations)["wcag2aa"] == 0
        assert category_breakdown(violations) == {}

    def test_breakdowns_without_raw_data(self):
        assert category_breakdown(None) == {}
        assert set(wcag_conformance_breakdown(None).values()) == {0}


class TestTopViolations:
    """Severity ordering."""

    def test_ordering_and_limit(self):
        report_violations = (
            make_violation("minor", ImpactLevel.MINOR),
            make_violation("serious-single", ImpactLevel.SERIOUS),
            make_violation("serious-both", ImpactLevel.SERIOUS, tools=("axe-core", "pa11y")),
            make_violation("critical", ImpactLevel.CRITICAL),
        )

        class Report:
            violations = report_violations

        top = top_violations(Report, limit=3)
        assert [v.rule_id for v in top] == ["critical", "serious-both", "serious-single"]

        consensus = top_violations(Report, consensus_only=True)
        assert [v.rule_id for v in consensus] == ["serious-both"]


class TestCompliance:
    """WCAG 2.1 A/AA compliance estimate."""

    def test_clean_page_is_fully_compliant(self):
        snapshot = wcag_compliance([])

        assert snapshot.percentage == 100
        assert snapshot.violated_criteria == []
        assert snapshot.critical_gaps == 0

    def test_violated_criteria_are_listed_once(self):
        snapshot = wcag_compliance([
            make_violation("color-contrast", criteria=("1.4.3",)),
            make_violation("other-contrast", ImpactLevel.CRITICAL, criteria=("1.4.3", "1.1.1")),
        ])

        assert snapshot.violated_criteria == ["1.1.1", "1.4.3"]
        assert snapshot.missing_criteria == ["Non-text Content", "Contrast (Minimum)"]
        assert snapshot.percentage == 96
        assert snapshot.critical_gaps == 1

    def test_untracked_criteria_ignored(self):
        snapshot = wcag_compliance([make_violation("aaa-only", criteria=("1.4.6",))])
        assert snapshot.percentage == 100

    @pytest.mark.parametrize("counts,expected", [
        ({"critical": 1}, "high"),
        ({"serious": 4}, "high"),
        ({"serious": 1}, "medium"),
        ({"moderate": 11}, "medium"),
        ({"moderate": 10, "minor": 0}, "low"),
        ({}, "low"),
    ])
    def test_compliance_risk(self, counts, expected):
        assert compliance_risk(counts) == expected


def test_build_audit_summary(engine, axe_violation, pa11y_issue):
    axe_violations = [
        axe_violation("color-contrast", tags=("cat.color", "wcag2aa", "wcag143")),
        axe_violation("label", impact="critical", tags=("cat.forms", "wcag2a", "wcag412")),
    ]
    report = engine.build_report(axe_violations, [pa11y_issue(CONTRAST_CODE)])

    summary = build_audit_summary(report, axe_violations)

    assert summary["total_violations"] == 2
    assert summary["consensus_count"] == 1
    assert summary["impact_counts"]["critical"] == 1
    assert summary["tool_counts"] == {"axe-core": 2, "pa11y": 1}
    assert summary["category_breakdown"] == {"color": 1, "forms": 1}
    assert summary["compliance"]["violated_criteria"] == ["1.4.3", "4.1.2"]
    assert summary["risk"] == "high"
    assert summary["secondary_stats"]["errors"] == 1
