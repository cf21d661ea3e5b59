"""
Violation Enricher

Adds LLM guidance (explanation, fix suggestion, code example) to reconciled
violations and writes an executive summary for the report.

Features:
- Explicit result type per violation: Enriched or EnrichmentFailed
- Bounded parallelism (ThreadPoolExecutor) over at most 30 violations
- One merge step owns every fallback default
- Never raises to the caller; the report is returned unchanged in shape

Usage:
    from a11y_intelligence.enrichment import ViolationEnricher, LLMClient

    enricher = ViolationEnricher(LLMClient())
    report = enricher.enrich_report(report, url="https://example.com", title="Home")
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from a11y_intelligence.config import (
    ENRICHMENT_MAX_WORKERS,
    FALLBACK_EXPLANATION,
    FALLBACK_FIX_SUGGESTION,
    FALLBACK_SUMMARY,
    MAX_VIOLATIONS_TO_ENRICH,
    RAW_EXPLANATION_LIMIT,
)
from a11y_intelligence.enrichment.llm_client import LLMClient, LLMUnavailableError, extract_json
from a11y_intelligence.enrichment.prompts import (
    SUMMARY_MAX_TOKENS,
    SUMMARY_SYSTEM_PROMPT,
    VIOLATION_MAX_TOKENS,
    VIOLATION_SYSTEM_PROMPT,
    build_summary_prompt,
    build_violation_prompt,
)
from a11y_intelligence.models.violations import (
    ConsensusReport,
    ImpactLevel,
    NormalizedViolation,
    PriorityRecommendation,
    ViolationEnrichment,
)
from a11y_intelligence.services.audit_summary import top_violations
from runner.logging_setup import get_logger

logger = get_logger("violation_enricher")


# ==============================================================================
# RESULT TYPES
# ==============================================================================

@dataclass(frozen=True)
class Enriched:
    """The model replied with usable guidance."""
    explanation: str
    fix_suggestion: str
    code_example: Optional[str] = None


@dataclass(frozen=True)
class EnrichmentFailed:
    """The model could not be reached or replied with something unusable."""
    reason: str
    raw_text: Optional[str] = None  # reply text when it was not valid JSON


EnrichmentResult = Union[Enriched, EnrichmentFailed]


@dataclass
class ReportSummary:
    """Executive summary of a report."""
    summary: str
    priority_recommendations: List[PriorityRecommendation] = field(default_factory=list)
    success: bool = True


def merge_enrichment(result: EnrichmentResult) -> ViolationEnrichment:
    """
    Turn an enrichment result into the violation's enrichment slot.

    Every default for missing or failed guidance is decided here.
    """
    if isinstance(result, Enriched):
        return ViolationEnrichment(
            explanation=result.explanation or FALLBACK_EXPLANATION,
            fix_suggestion=result.fix_suggestion or FALLBACK_FIX_SUGGESTION,
            code_example=result.code_example or None,
        )

    if result.raw_text:
        return ViolationEnrichment(
            explanation=result.raw_text[:RAW_EXPLANATION_LIMIT] + "...",
            fix_suggestion=FALLBACK_FIX_SUGGESTION,
            code_example=None,
        )

    return ViolationEnrichment(
        explanation=FALLBACK_EXPLANATION,
        fix_suggestion=FALLBACK_FIX_SUGGESTION,
        code_example=None,
    )


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text if text and text.lower() != "null" else None


def _parse_recommendations(items: Any) -> List[PriorityRecommendation]:
    recommendations = []
    for item in items if isinstance(items, list) else []:
        if isinstance(item, str) and item.strip():
            recommendations.append(PriorityRecommendation(title=item.strip()))
        elif isinstance(item, dict) and _text(item.get('title')):
            effort = str(item.get('effort') or 'medium').lower()
            recommendations.append(PriorityRecommendation(
                title=_text(item.get('title')),
                description=_text(item.get('description')) or "",
                impact=ImpactLevel.parse(item.get('impact')),
                effort=effort if effort in ('low', 'medium', 'high') else 'medium',
            ))
    return recommendations


# ==============================================================================
# ENRICHER
# ==============================================================================

class ViolationEnricher:
    """
    LLM enrichment of consensus reports.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        max_violations: int = MAX_VIOLATIONS_TO_ENRICH,
        max_workers: int = ENRICHMENT_MAX_WORKERS,
    ):
        """
        Initialize enricher.

        Args:
            llm_client: Client used for every request
            max_violations: Violations enriched per report (first N in report order)
            max_workers: Concurrent requests
        """
        self.llm_client = llm_client
        self.max_violations = max_violations
        self.max_workers = max(1, max_workers)

    def enrich_violation(self, violation: NormalizedViolation, url: str) -> EnrichmentResult:
        """
        Ask the model about one violation.

        Args:
            violation: Reconciled violation
            url: Audited page URL

        Returns:
            Enriched or EnrichmentFailed
        """
        try:
            text = self.llm_client.complete(
                VIOLATION_SYSTEM_PROMPT,
                build_violation_prompt(violation, url),
                max_tokens=VIOLATION_MAX_TOKENS,
            )
        except LLMUnavailableError as e:
            logger.warning(f"Enrichment unavailable for {violation.rule_id}: {e}")
            return EnrichmentFailed(reason=str(e))
        except Exception as e:
            logger.error(f"Unexpected enrichment error for {violation.rule_id}: {e}")
            return EnrichmentFailed(reason=f"Unexpected error: {e}")

        try:
            parsed = extract_json(text)
        except ValueError as e:
            logger.warning(f"Non-JSON enrichment reply for {violation.rule_id}: {e}")
            return EnrichmentFailed(reason=str(e), raw_text=text)

        return Enriched(
            explanation=_text(parsed.get('explanation')) or "",
            fix_suggestion=_text(parsed.get('fixSuggestion')) or "",
            code_example=_text(parsed.get('codeExample')),
        )

    def enrich_violations(self, violations: List[NormalizedViolation], url: str) -> Dict[str, EnrichmentResult]:
        """
        Enrich up to max_violations violations concurrently.

        Returns:
            rule_id -> EnrichmentResult, for the selected violations only
        """
        selected = violations[:self.max_violations]
        if not selected:
            return {}

        if len(violations) > len(selected):
            logger.info(f"Enriching first {len(selected)} of {len(violations)} violations")

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(selected))) as executor:
            results = list(executor.map(lambda v: self.enrich_violation(v, url), selected))

        failed = sum(1 for r in results if isinstance(r, EnrichmentFailed))
        if failed:
            logger.warning(f"{failed}/{len(selected)} enrichment request(s) failed, defaults applied")

        return {v.rule_id: r for v, r in zip(selected, results)}

    def summarize(self, report: ConsensusReport, url: str, title: str = "") -> ReportSummary:
        """
        Executive summary and priority recommendations for a report.

        Returns:
            ReportSummary (success=False with a default summary on failure)
        """
        prompt = build_summary_prompt(report, url, title or url, top_violations(report, limit=5))

        try:
            parsed = self.llm_client.complete_json(SUMMARY_SYSTEM_PROMPT, prompt, max_tokens=SUMMARY_MAX_TOKENS)
        except (LLMUnavailableError, ValueError) as e:
            logger.warning(f"Summary generation failed for {url}: {e}")
            return ReportSummary(summary=FALLBACK_SUMMARY, success=False)
        except Exception as e:
            logger.error(f"Unexpected summary error for {url}: {e}")
            return ReportSummary(summary=FALLBACK_SUMMARY, success=False)

        return ReportSummary(
            summary=_text(parsed.get('summary')) or FALLBACK_SUMMARY,
            priority_recommendations=_parse_recommendations(parsed.get('priorityRecommendations')),
        )

    def enrich_report(self, report: ConsensusReport, url: str, title: str = "", with_summary: bool = True) -> ConsensusReport:
        """
        Enrich a report's violations and (optionally) add a summary.

        Args:
            report: Consensus report
            url: Audited page URL
            title: Page title (used in the summary prompt)
            with_summary: Also generate the executive summary

        Returns:
            New ConsensusReport; scores and counts are unchanged
        """
        results = self.enrich_violations(list(report.violations), url)
        enrichments = {rule_id: merge_enrichment(result) for rule_id, result in results.items()}

        summary = None
        recommendations = None
        if with_summary:
            report_summary = self.summarize(report, url, title)
            summary = report_summary.summary
            recommendations = report_summary.priority_recommendations

        return report.with_enrichments(enrichments, summary=summary, priority_recommendations=recommendations)
