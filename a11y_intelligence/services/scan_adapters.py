"""
Scan Result Adapters

Turns each scanner's native output into NormalizedViolation candidates.

Adapters:
- AxeResultAdapter: axe-core `violations` entries (id, impact, tags, nodes)
- Pa11yResultAdapter: Pa11y issues (code, type, message, selector, context)

Every candidate carries detected_by=(tool,) and the tool's baseline
confidence. Findings of the same canonical rule are coalesced into one
candidate (grouped by rule, never by element), informational findings are
dropped, and malformed entries are skipped with a warning.

Usage:
    from a11y_intelligence.services.scan_adapters import get_axe_adapter, get_pa11y_adapter

    primary = get_axe_adapter().adapt(axe_results["violations"])
    secondary = get_pa11y_adapter().adapt(pa11y_issues)
"""

from typing import Any, Dict, List, Optional, Tuple

from a11y_intelligence.config import (
    HTML_MAX_LENGTH,
    MULTIPLE_ELEMENTS_SELECTOR,
    PRIMARY_TOOL,
    SECONDARY_TOOL,
    TARGET_PREVIEW_LIMIT,
    ScoringConfig,
    get_scoring_config,
)
from a11y_intelligence.models.violations import (
    ImpactLevel,
    NormalizedViolation,
    WcagCriterion,
    WcagLevel,
)
from a11y_intelligence.services.rule_mapping import (
    INFORMATIONAL_LABELS,
    PA11Y_TYPE_IMPACT,
    criteria_from_secondary_code,
    criteria_from_tags,
    help_url_for,
    level_from_secondary_code,
    levels_from_tags,
    map_secondary_code,
)
from runner.logging_setup import get_logger

logger = get_logger("scan_adapters")


def truncate_html(html: Optional[str], limit: int = HTML_MAX_LENGTH) -> str:
    """Return html cut to limit characters ("" for missing values)."""
    if not isinstance(html, str):
        return ""
    return html[:limit]


def format_selector(target: Any) -> str:
    """
    Render an axe node target as one selector string.

    axe targets are lists of selectors; iframe and shadow DOM paths are
    nested lists, which are joined with " > ".
    """
    if isinstance(target, str):
        return target
    if isinstance(target, (list, tuple)):
        parts = []
        for part in target:
            if isinstance(part, (list, tuple)):
                parts.append(" > ".join(str(p) for p in part))
            elif part:
                parts.append(str(part))
        return ", ".join(parts)
    return ""


class _CandidateGroup:
    """Accumulates the findings of one canonical rule from one tool."""

    def __init__(self, rule_id: str, description: str, impact: ImpactLevel, help_url: str,
                 criteria: Tuple[WcagCriterion, ...], level: WcagLevel, html: str):
        self.rule_id = rule_id
        self.description = description
        self.impact = impact
        self.help_url = help_url
        self.criteria = list(criteria)
        self.level = level
        self.html = html
        self.targets: List[str] = []
        self.element_count = 0
        self.raw: List[Dict[str, Any]] = []

    def add_targets(self, selectors: List[str]):
        for selector in selectors:
            if selector and selector not in self.targets:
                self.targets.append(selector)

    def add_criteria(self, criteria: Tuple[WcagCriterion, ...], level: WcagLevel):
        known = {c.criterion for c in self.criteria}
        for criterion in criteria:
            if criterion.criterion not in known:
                self.criteria.append(criterion)
                known.add(criterion.criterion)
        self.level = WcagLevel.strictest([self.level, level])

    def build(self, tool: str, confidence: int, preview_limit: int) -> NormalizedViolation:
        preview = tuple(self.targets[:preview_limit])
        return NormalizedViolation(
            rule_id=self.rule_id,
            description=self.description,
            impact=self.impact,
            help_url=self.help_url,
            detected_by=(tool,),
            confidence=confidence,
            wcag_criteria=tuple(self.criteria),
            wcag_level=self.level,
            selector=", ".join(preview) or MULTIPLE_ELEMENTS_SELECTOR,
            html=self.html,
            target=preview,
            element_count=max(1, self.element_count),
            tool_data={tool: list(self.raw)},
        )


class ScanResultAdapter:
    """
    Base adapter: groups raw findings by canonical rule and builds candidates.

    Subclasses implement _rule_id() and _open_group() / _extend_group() for
    their tool's field names.
    """

    tool_name = ""

    def __init__(
        self,
        confidence: int,
        html_max_length: int = HTML_MAX_LENGTH,
        target_preview_limit: int = TARGET_PREVIEW_LIMIT,
    ):
        self.confidence = confidence
        self.html_max_length = html_max_length
        self.target_preview_limit = target_preview_limit

    def adapt(self, findings: Optional[List[Dict[str, Any]]]) -> List[NormalizedViolation]:
        """
        Normalize one tool's raw findings.

        Args:
            findings: Raw findings in the tool's native shape (None is treated as empty)

        Returns:
            One NormalizedViolation per canonical rule, in first-seen order
        """
        groups: Dict[str, _CandidateGroup] = {}
        skipped = 0
        dropped = 0

        for finding in findings or []:
            if not isinstance(finding, dict):
                skipped += 1
                continue
            if self._is_informational(finding):
                dropped += 1
                continue

            rule_id = self._rule_id(finding)
            if not rule_id:
                skipped += 1
                continue

            group = groups.get(rule_id)
            if group is None:
                group = self._open_group(rule_id, finding)
                groups[rule_id] = group
            self._extend_group(group, finding)
            group.raw.append(finding)

        if skipped:
            logger.warning(f"{self.tool_name}: skipped {skipped} malformed finding(s)")
        if dropped:
            logger.debug(f"{self.tool_name}: dropped {dropped} informational finding(s)")

        candidates = [
            group.build(self.tool_name, self.confidence, self.target_preview_limit)
            for group in groups.values()
        ]
        logger.debug(f"{self.tool_name}: {len(candidates)} candidate violation(s)")
        return candidates

    def _is_informational(self, finding: Dict[str, Any]) -> bool:
        return False

    def _rule_id(self, finding: Dict[str, Any]) -> str:
        raise NotImplementedError

    def _open_group(self, rule_id: str, finding: Dict[str, Any]) -> _CandidateGroup:
        raise NotImplementedError

    def _extend_group(self, group: _CandidateGroup, finding: Dict[str, Any]):
        raise NotImplementedError


class AxeResultAdapter(ScanResultAdapter):
    """Adapter for axe-core violation objects."""

    tool_name = PRIMARY_TOOL

    def _rule_id(self, finding: Dict[str, Any]) -> str:
        rule_id = finding.get('id')
        return rule_id.strip() if isinstance(rule_id, str) else ''

    def _open_group(self, rule_id: str, finding: Dict[str, Any]) -> _CandidateGroup:
        tags = finding.get('tags') or []
        nodes = self._nodes(finding)
        first_html = nodes[0].get('html') if nodes else None

        return _CandidateGroup(
            rule_id=rule_id,
            description=finding.get('description') or finding.get('help') or rule_id,
            impact=ImpactLevel.parse(finding.get('impact')),
            help_url=finding.get('helpUrl') or help_url_for(rule_id),
            criteria=criteria_from_tags(tags),
            level=levels_from_tags(tags),
            html=truncate_html(first_html, self.html_max_length),
        )

    def _extend_group(self, group: _CandidateGroup, finding: Dict[str, Any]):
        nodes = self._nodes(finding)
        group.element_count += len(nodes)
        group.add_targets([format_selector(node.get('target')) for node in nodes])

        tags = finding.get('tags') or []
        group.add_criteria(criteria_from_tags(tags), levels_from_tags(tags))

        # Keep the most severe impact reported for the rule
        impact = ImpactLevel.parse(finding.get('impact'))
        if impact.rank > group.impact.rank:
            group.impact = impact

    @staticmethod
    def _nodes(finding: Dict[str, Any]) -> List[Dict[str, Any]]:
        nodes = finding.get('nodes') or []
        return [node for node in nodes if isinstance(node, dict)]


class Pa11yResultAdapter(ScanResultAdapter):
    """Adapter for Pa11y (HTML_CodeSniffer) issues."""

    tool_name = SECONDARY_TOOL

    def _is_informational(self, finding: Dict[str, Any]) -> bool:
        issue_type = finding.get('type')
        return isinstance(issue_type, str) and issue_type.strip().lower() in INFORMATIONAL_LABELS

    def _rule_id(self, finding: Dict[str, Any]) -> str:
        code = finding.get('code')
        return map_secondary_code(code) if isinstance(code, str) else ''

    @staticmethod
    def _impact(finding: Dict[str, Any]) -> ImpactLevel:
        issue_type = finding.get('type')
        label = PA11Y_TYPE_IMPACT.get(issue_type.strip().lower()) if isinstance(issue_type, str) else None
        return ImpactLevel.parse(label)

    def _open_group(self, rule_id: str, finding: Dict[str, Any]) -> _CandidateGroup:
        code = finding.get('code', '')
        return _CandidateGroup(
            rule_id=rule_id,
            description=finding.get('message') or rule_id,
            impact=self._impact(finding),
            help_url=help_url_for(rule_id),
            criteria=criteria_from_secondary_code(code),
            level=level_from_secondary_code(code),
            html=truncate_html(finding.get('context'), self.html_max_length),
        )

    def _extend_group(self, group: _CandidateGroup, finding: Dict[str, Any]):
        group.element_count += 1
        selector = finding.get('selector')
        if isinstance(selector, str):
            group.add_targets([selector.strip()])

        code = finding.get('code', '')
        group.add_criteria(criteria_from_secondary_code(code), level_from_secondary_code(code))

        impact = self._impact(finding)
        if impact.rank > group.impact.rank:
            group.impact = impact


def get_axe_adapter(config: Optional[ScoringConfig] = None) -> AxeResultAdapter:
    """Build the axe-core adapter with the configured baseline confidence."""
    config = config or get_scoring_config()
    return AxeResultAdapter(confidence=config.primary_confidence)


def get_pa11y_adapter(config: Optional[ScoringConfig] = None) -> Pa11yResultAdapter:
    """Build the Pa11y adapter with the configured baseline confidence."""
    config = config or get_scoring_config()
    return Pa11yResultAdapter(confidence=config.secondary_confidence)
