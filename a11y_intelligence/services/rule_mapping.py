"""
Rule-Code Mapping Tables

Translates between the vocabularies of the two scanners and the WCAG
standard.

Features:
- Pa11y / HTML_CodeSniffer code -> canonical axe-core rule id
  (many-to-one, matched on technique segments, longest first)
- Canonical rule id -> help URL (Deque University for axe rules,
  W3C Understanding / Quick Reference otherwise)
- axe-core tag -> WCAG level and success criteria
- Pa11y code -> WCAG level and success criterion
- Tracked WCAG 2.1 A/AA success criteria (for compliance percentages)

Unmapped input never raises: an unknown Pa11y code keeps its own code as
identity and an unknown tag yields level Unknown.

Usage:
    from a11y_intelligence.services.rule_mapping import map_secondary_code, levels_from_tags

    rule_id = map_secondary_code("WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail")  # color-contrast
    level = levels_from_tags(["wcag2aa", "wcag143"])                                # WcagLevel.AA
"""

import re
from typing import Dict, List, Optional, Tuple

from a11y_intelligence.models.violations import WcagCriterion, WcagLevel


# ==============================================================================
# PA11Y (HTML_CodeSniffer) -> AXE-CORE
# ==============================================================================

# Keyed by technique segments of the code (everything after the success
# criterion segment). Lookup tries the longest technique prefix first, so
# "H91.A.EmptyNoId" matches "H91.A". Sub-codes of a bare technique can mean
# unrelated things (H91.Div.Name vs H91.Select.Name), so only families whose
# sub-codes all describe the same failure are listed here.
PA11Y_TECHNIQUE_MAP: Dict[str, str] = {
    # 1.1.1 Non-text content
    'H37': 'image-alt',
    'H36': 'input-image-alt',
    'H24': 'area-alt',
    'H53': 'object-alt',
    'H30.2': 'link-name',             # link whose only content is an image without alt

    # 1.3.1 Info and relationships
    'H42.2': 'empty-heading',
    'H43.IncorrectAttr': 'td-headers-attr',
    'H63.2': 'scope-attr-valid',
    'F68': 'label',
    'H93': 'duplicate-id',

    # 1.4.3 / 1.4.6 Contrast
    'G18': 'color-contrast',
    'G145': 'color-contrast',
    'G17': 'color-contrast-enhanced',

    # 2.2.1 / 3.2.5 Timing
    'F41': 'meta-refresh',
    'F40': 'meta-refresh',

    # 2.4.2 Page titled
    'H25.1': 'document-title',

    # 2.4.1 / 4.1.2 Frames
    'H64': 'frame-title',

    # 3.1.1 / 3.1.2 Language
    'H57.2': 'html-has-lang',
    'H57.3': 'html-lang-valid',
    'H58': 'valid-lang',

    # 4.1.1 Parsing
    'F77': 'duplicate-id',

    # 4.1.2 Name, role, value
    'H91.A': 'link-name',
    'H91.Button': 'button-name',
    'H91.InputText': 'label',
    'H91.InputEmail': 'label',
    'H91.InputPassword': 'label',
    'H91.InputCheckbox': 'label',
    'H91.InputRadio': 'label',
    'H91.Textarea': 'label',
    'H91.Select': 'select-name',
}

# Matched only when the code carries no further sub-code
PA11Y_EXACT_TECHNIQUE_MAP: Dict[str, str] = {
    'H42': 'heading-order',
    'H48': 'list',
}

# Pa11y issue type -> impact label; "notice" is informational and dropped
PA11Y_TYPE_IMPACT: Dict[str, str] = {
    'error': 'serious',
    'warning': 'moderate',
}

INFORMATIONAL_LABELS = frozenset({'notice', 'info', 'informational'})

_PA11Y_CODE_RE = re.compile(
    r'^(?P<standard>WCAG2A{1,3})'
    r'\.Principle(?P<principle>\d+)'
    r'\.Guideline(?P<g_principle>\d+)_(?P<g_number>\d+)'
    r'\.(?P<c1>\d+)_(?P<c2>\d+)_(?P<c3>\d+)'
    r'(?:\.(?P<techniques>.+))?$'
)

_PA11Y_STANDARD_LEVELS = {
    'WCAG2A': WcagLevel.A,
    'WCAG2AA': WcagLevel.AA,
    'WCAG2AAA': WcagLevel.AAA,
}


def _technique_segments(code: str) -> List[str]:
    """Return the technique segments of a Pa11y code ([] when not a WCAG2 code)."""
    match = _PA11Y_CODE_RE.match(code)
    if not match or not match.group('techniques'):
        return []
    return match.group('techniques').split('.')


def map_secondary_code(code: Optional[str]) -> str:
    """
    Map a Pa11y code to its canonical rule id.

    Args:
        code: Pa11y code (e.g. "WCAG2AA.Principle1.Guideline1_1.1_1_1.H37")

    Returns:
        Canonical axe rule id, or the code itself when it has no mapping
    """
    if not code:
        return ''

    code = code.strip()
    segments = _technique_segments(code)

    for length in range(len(segments), 0, -1):
        prefix = segments[:length]
        tables = [PA11Y_TECHNIQUE_MAP]
        if length == len(segments):
            tables.insert(0, PA11Y_EXACT_TECHNIQUE_MAP)

        # Combined techniques ("G145,G18") map through any member
        head, rest = prefix[0], prefix[1:]
        keys = ['.'.join(prefix)]
        if ',' in head:
            keys.extend('.'.join([technique] + rest) for technique in head.split(','))

        for table in tables:
            for key in keys:
                if key in table:
                    return table[key]

    # Pa11y's axe runner already reports axe ids; other codes keep their own identity
    return code


def level_from_secondary_code(code: Optional[str]) -> WcagLevel:
    """Return the conformance level of a Pa11y code's standard prefix."""
    match = _PA11Y_CODE_RE.match(code or '')
    if not match:
        return WcagLevel.UNKNOWN
    return _PA11Y_STANDARD_LEVELS.get(match.group('standard'), WcagLevel.UNKNOWN)


def criteria_from_secondary_code(code: Optional[str]) -> Tuple[WcagCriterion, ...]:
    """
    Extract the success criterion from a Pa11y code.

    "WCAG2AA.Principle1.Guideline1_4.1_4_3.G18.Fail" -> (1.4.3, AA, 1.4)
    """
    match = _PA11Y_CODE_RE.match(code or '')
    if not match:
        return ()

    criterion = f"{match.group('c1')}.{match.group('c2')}.{match.group('c3')}"
    guideline = f"{match.group('g_principle')}.{match.group('g_number')}"
    level = _PA11Y_STANDARD_LEVELS.get(match.group('standard'), WcagLevel.UNKNOWN)
    return (WcagCriterion(criterion=criterion, level=level, guideline=guideline),)


# ==============================================================================
# AXE-CORE TAGS -> WCAG
# ==============================================================================

# wcag2a, wcag2aa, wcag2aaa, wcag21a, wcag21aa, wcag22aa, ...
_LEVEL_TAG_RE = re.compile(r'^wcag2\d?(?P<level>a{1,3})$')

# wcag111 -> 1.1.1, wcag143 -> 1.4.3, wcag1410 -> 1.4.10
_CRITERION_TAG_RE = re.compile(r'^wcag(?P<principle>\d)(?P<guideline>\d)(?P<criterion>\d{1,2})$')

_TAG_LEVELS = {
    'a': WcagLevel.A,
    'aa': WcagLevel.AA,
    'aaa': WcagLevel.AAA,
}


def levels_from_tags(tags: Optional[List[str]]) -> WcagLevel:
    """
    Return the strictest conformance level named by axe tags.

    Precedence is AAA > AA > A > Unknown. Only exact level tags count, so
    "wcag2a-obsolete" or "best-practice" do not affect the result.
    """
    levels = []
    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        match = _LEVEL_TAG_RE.match(tag.strip().lower())
        if match:
            levels.append(_TAG_LEVELS[match.group('level')])
    return WcagLevel.strictest(levels)


def criteria_from_tags(tags: Optional[List[str]]) -> Tuple[WcagCriterion, ...]:
    """
    Extract WCAG success criteria from axe tags, in tag order.

    Each criterion takes the strictest conformance level found in the same
    tag list, since axe reports the level as a separate tag.
    """
    level = levels_from_tags(tags)
    criteria = []
    seen = set()

    for tag in tags or []:
        if not isinstance(tag, str):
            continue
        match = _CRITERION_TAG_RE.match(tag.strip().lower())
        if not match:
            continue

        principle = match.group('principle')
        guideline = f"{principle}.{match.group('guideline')}"
        criterion = f"{guideline}.{int(match.group('criterion'))}"
        if criterion in seen:
            continue
        seen.add(criterion)
        criteria.append(WcagCriterion(criterion=criterion, level=level, guideline=guideline))

    return tuple(criteria)


# ==============================================================================
# HELP URLS
# ==============================================================================

AXE_HELP_URL = "https://dequeuniversity.com/rules/axe/4.10/{rule_id}"
WCAG_UNDERSTANDING_URL = "https://www.w3.org/WAI/WCAG21/Understanding/"
WCAG_QUICKREF_URL = "https://www.w3.org/WAI/WCAG21/quickref/"

_AXE_RULE_ID_RE = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def help_url_for(rule_id: str) -> str:
    """
    Generate a help URL for a canonical rule id.

    Args:
        rule_id: Canonical axe rule id, or an unmapped Pa11y code

    Returns:
        Deque University URL for axe rule ids, the W3C Understanding index
        for WCAG2 codes, the W3C Quick Reference otherwise
    """
    if rule_id and _AXE_RULE_ID_RE.match(rule_id):
        return AXE_HELP_URL.format(rule_id=rule_id)
    if rule_id and rule_id.startswith('WCAG2'):
        return WCAG_UNDERSTANDING_URL
    return WCAG_QUICKREF_URL


# ==============================================================================
# TRACKED SUCCESS CRITERIA
# ==============================================================================

# WCAG 2.1 success criteria at levels A and AA: id -> (name, level)
WCAG21_AA_CRITERIA: Dict[str, Tuple[str, WcagLevel]] = {
    '1.1.1': ('Non-text Content', WcagLevel.A),
    '1.2.1': ('Audio-only and Video-only (Prerecorded)', WcagLevel.A),
    '1.2.2': ('Captions (Prerecorded)', WcagLevel.A),
    '1.2.3': ('Audio Description or Media Alternative (Prerecorded)', WcagLevel.A),
    '1.2.4': ('Captions (Live)', WcagLevel.AA),
    '1.2.5': ('Audio Description (Prerecorded)', WcagLevel.AA),
    '1.3.1': ('Info and Relationships', WcagLevel.A),
    '1.3.2': ('Meaningful Sequence', WcagLevel.A),
    '1.3.3': ('Sensory Characteristics', WcagLevel.A),
    '1.3.4': ('Orientation', WcagLevel.AA),
    '1.3.5': ('Identify Input Purpose', WcagLevel.AA),
    '1.4.1': ('Use of Color', WcagLevel.A),
    '1.4.2': ('Audio Control', WcagLevel.A),
    '1.4.3': ('Contrast (Minimum)', WcagLevel.AA),
    '1.4.4': ('Resize text', WcagLevel.AA),
    '1.4.5': ('Images of Text', WcagLevel.AA),
    '1.4.10': ('Reflow', WcagLevel.AA),
    '1.4.11': ('Non-text Contrast', WcagLevel.AA),
    '1.4.12': ('Text Spacing', WcagLevel.AA),
    '1.4.13': ('Content on Hover or Focus', WcagLevel.AA),
    '2.1.1': ('Keyboard', WcagLevel.A),
    '2.1.2': ('No Keyboard Trap', WcagLevel.A),
    '2.1.4': ('Character Key Shortcuts', WcagLevel.A),
    '2.2.1': ('Timing Adjustable', WcagLevel.A),
    '2.2.2': ('Pause, Stop, Hide', WcagLevel.A),
    '2.3.1': ('Three Flashes or Below Threshold', WcagLevel.A),
    '2.4.1': ('Bypass Blocks', WcagLevel.A),
    '2.4.2': ('Page Titled', WcagLevel.A),
    '2.4.3': ('Focus Order', WcagLevel.A),
    '2.4.4': ('Link Purpose (In Context)', WcagLevel.A),
    '2.4.5': ('Multiple Ways', WcagLevel.AA),
    '2.4.6': ('Headings and Labels', WcagLevel.AA),
    '2.4.7': ('Focus Visible', WcagLevel.AA),
    '2.5.1': ('Pointer Gestures', WcagLevel.A),
    '2.5.2': ('Pointer Cancellation', WcagLevel.A),
    '2.5.3': ('Label in Name', WcagLevel.A),
    '2.5.4': ('Motion Actuation', WcagLevel.A),
    '3.1.1': ('Language of Page', WcagLevel.A),
    '3.1.2': ('Language of Parts', WcagLevel.AA),
    '3.2.1': ('On Focus', WcagLevel.A),
    '3.2.2': ('On Input', WcagLevel.A),
    '3.2.3': ('Consistent Navigation', WcagLevel.AA),
    '3.2.4': ('Consistent Identification', WcagLevel.AA),
    '3.3.1': ('Error Identification', WcagLevel.A),
    '3.3.2': ('Labels or Instructions', WcagLevel.A),
    '3.3.3': ('Error Suggestion', WcagLevel.AA),
    '3.3.4': ('Error Prevention (Legal, Financial, Data)', WcagLevel.AA),
    '4.1.1': ('Parsing', WcagLevel.A),
    '4.1.2': ('Name, Role, Value', WcagLevel.A),
    '4.1.3': ('Status Messages', WcagLevel.AA),
}

# Conformance tags counted in the WCAG breakdown
CONFORMANCE_TAGS = ('wcag2a', 'wcag2aa', 'wcag21a', 'wcag21aa', 'wcag22aa', 'section508')

# axe-core category tags counted in the category breakdown
CATEGORY_TAGS = (
    'cat.aria', 'cat.color', 'cat.forms', 'cat.keyboard', 'cat.language',
    'cat.name-role-value', 'cat.parsing', 'cat.semantics', 'cat.sensory-and-visual-cues',
    'cat.structure', 'cat.tables', 'cat.text-alternatives', 'cat.time-and-media',
)
