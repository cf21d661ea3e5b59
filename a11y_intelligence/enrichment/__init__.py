"""
A11y Intelligence Enrichment

LLM collaborators that add human guidance to reconciled violations:
- llm_client: Anthropic Claude client with retry and JSON extraction
- prompts: violation and summary prompt builders
- violation_enricher: Enriched / EnrichmentFailed results and report merge
"""

from .llm_client import LLMClient, LLMUnavailableError, extract_json
from .violation_enricher import (
    Enriched,
    EnrichmentFailed,
    EnrichmentResult,
    ReportSummary,
    ViolationEnricher,
    merge_enrichment,
)

__all__ = [
    'LLMClient',
    'LLMUnavailableError',
    'extract_json',
    'Enriched',
    'EnrichmentFailed',
    'EnrichmentResult',
    'ReportSummary',
    'ViolationEnricher',
    'merge_enrichment',
]
