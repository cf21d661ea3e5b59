"""
A11y Intelligence System

Multi-tool accessibility violation consensus engine.

This package provides:
- Adapters for axe-core and Pa11y (HTML_CodeSniffer) scan output
- Rule-code mapping between the two tools' vocabularies
- Cross-tool violation reconciliation
- Consensus confidence and accessibility score calculation
- Optional LLM enrichment of reconciled violations
- Audit job processing, scheduling and persistence

Architecture:
- Pure, synchronous core (no I/O, deterministic per input)
- Collaborators (scanners, LLM, database) injected at the edges
- Immutable violation snapshots per audit run
"""

__version__ = "1.0.0"
__author__ = "A11y Intelligence Team"

__all__ = []
