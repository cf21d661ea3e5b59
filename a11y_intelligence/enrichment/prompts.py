"""
Prompt builders for violation enrichment and report summaries.
"""

from typing import List

from a11y_intelligence.models.violations import ConsensusReport, NormalizedViolation


VIOLATION_SYSTEM_PROMPT = (
    "You are an expert accessibility consultant with deep knowledge of WCAG guidelines, "
    "Section 508, and multi-tool accessibility testing. Provide clear, actionable guidance "
    "considering the confidence and tool consensus of findings."
)

SUMMARY_SYSTEM_PROMPT = (
    "You are a senior accessibility consultant specializing in multi-tool testing analysis. "
    "Focus on the value of tool consensus and comprehensive coverage in your recommendations."
)

VIOLATION_MAX_TOKENS = 700
SUMMARY_MAX_TOKENS = 1200


def _tool_context(violation: NormalizedViolation) -> str:
    if violation.is_consensus:
        tools = " and ".join(violation.detected_by)
        return (
            f"This issue was independently detected by {tools}, "
            f"giving it high confidence ({violation.confidence}%)."
        )
    return f"This issue was detected by {violation.detected_by[0]} only (confidence: {violation.confidence}%)."


def _tool_notes(violation: NormalizedViolation) -> List[str]:
    notes = []
    for tool, findings in violation.tool_data.items():
        first = findings[0] if isinstance(findings, list) and findings else findings
        if not isinstance(first, dict):
            continue
        detail = first.get('help') or first.get('message')
        if detail:
            notes.append(f"{tool}: {detail}")
    return notes


def build_violation_prompt(violation: NormalizedViolation, url: str) -> str:
    """Prompt asking for explanation, fix and code example of one violation."""
    notes = "\n".join(_tool_notes(violation)) or "Standard detection"

    return f"""Analyze this accessibility violation found during multi-tool testing:

VIOLATION DETAILS:
- Rule ID: {violation.rule_id}
- Description: {violation.description}
- Impact Level: {violation.impact.value}
- WCAG Level: {violation.wcag_level.value}
- Confidence: {violation.confidence}%
- Affected elements: {violation.element_count}
- URL: {url}

MULTI-TOOL CONTEXT:
{_tool_context(violation)}

HTML ELEMENT: {violation.html or 'Not available'}
CSS SELECTOR: {violation.selector or 'Not available'}

TOOL-SPECIFIC DATA:
{notes}

Please provide:
1. A clear explanation of why this is an accessibility issue and which users it affects
2. Specific, actionable steps to fix this violation
3. If possible, a code example showing the corrected version

Respond in JSON format:
{{
  "explanation": "Detailed explanation considering multi-tool findings",
  "fixSuggestion": "Specific, actionable steps to fix this issue",
  "codeExample": "Code example showing the fix (or null if not applicable)"
}}"""


def build_summary_prompt(report: ConsensusReport, url: str, title: str, top: List[NormalizedViolation]) -> str:
    """Prompt asking for an executive summary and priority recommendations."""
    top_lines = "\n".join(
        f"- {v.rule_id} ({v.impact.value}): {v.description} [Detected by: {', '.join(v.detected_by)}]"
        for v in top
    ) or "- None"

    primary = report.primary_stats
    secondary = report.secondary_stats

    return f"""Analyze this comprehensive multi-tool accessibility audit:

WEBSITE INFORMATION:
- Title: {title}
- URL: {url}
- Tools: {', '.join(report.tools_used)}

MULTI-TOOL RESULTS:
axe-core Results: {primary.violations} violations, {primary.passes} passes
Pa11y Results: {secondary.total} issues
Consensus Violations: {report.consensus_count} (high confidence)
Unique Violations: {report.unique_count} (tool-specific)
Overall Confidence: {report.overall_confidence}%
Accessibility Score: {report.overall_score}/100

TOP VIOLATIONS:
{top_lines}

Please provide:
1. An executive summary of the website's accessibility status
2. Assessment of confidence levels and tool consensus
3. Priority recommendations focusing on high-confidence findings first

Respond in JSON format:
{{
  "summary": "Executive summary",
  "priorityRecommendations": [
    {{
      "title": "Clear, actionable recommendation title",
      "description": "Detailed recommendation with implementation guidance",
      "impact": "critical|serious|moderate|minor",
      "effort": "low|medium|high"
    }}
  ]
}}"""
