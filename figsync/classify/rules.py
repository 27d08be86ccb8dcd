"""Ordered rule engine for semantic classification.

Rules run in fixed priority order and the first sufficiently confident
hit wins:

1. structural kind (text, vector primitives, image rectangles),
2. interaction (nodes that trigger an action),
3. name tokens against keyword families,
4. structural heuristics.

Each rule is a plain function `(Node) -> Classification | None`.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from figsync.graph import (
    Classification,
    ClassificationSource,
    Confidence,
    Node,
    NodeKind,
    SemanticRole,
)

logger = logging.getLogger(__name__)

Rule = Callable[[Node], Classification | None]

# =============================================================================
# Name Tokenization
# =============================================================================

_DELIMITERS = re.compile(r"[_\-\s/.]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def tokenize_name(name: str) -> list[str]:
    """Split a display name into lower-case tokens.

    Delimiters are `_`, `-`, whitespace, `/` and `.`; camelCase and
    PascalCase boundaries split too.

    Example:
        >>> tokenize_name("Nav/TabBar_Item-2")
        ['nav', 'tab', 'bar', 'item', '2']
    """
    tokens = []
    for part in _DELIMITERS.split(name or ""):
        for token in _CAMEL_BOUNDARY.split(part):
            if token:
                tokens.append(token.lower())
    return tokens


def _candidates(tokens: list[str]) -> set[str]:
    """Whole tokens, adjacent-pair joins ("tab"+"bar") and plural stems."""
    candidates = set(tokens)
    candidates.update(a + b for a, b in zip(tokens, tokens[1:]))
    candidates.update(t[:-1] for t in tokens if len(t) > 3 and t.endswith("s"))
    return candidates


@dataclass(frozen=True)
class KeywordFamily:
    """Keywords that map a name to a role.

    Multi-word keywords ("text-field") are stored joined ("textfield") and
    match two adjacent name tokens.
    """

    name: str
    role: SemanticRole
    confidence: Confidence
    keywords: frozenset[str]

    def matches(self, candidates: set[str]) -> str | None:
        hits = self.keywords & candidates
        return min(hits) if hits else None


# Families in priority order: first family with a matching token wins.
_FAMILY_KEYWORDS = {
    "button": "btn button cta action submit cancel confirm close",
    "input": "input field textfield text-field text_field textarea search",
    "toggle": "toggle switch checkbox check radio",
    "slider": "slider range scrubber",
    "dropdown": "dropdown select picker menu combobox",
    "image": "image img photo picture thumbnail cover",
    "icon": "icon icn glyph symbol",
    "scroll": "scroll scrollview scrollable scroller",
    "list": "list grid collection items",
    "card": "card tile panel cell",
    "navigation": "nav navbar navigation menubar sidebar bottombar tabbar",
    "header": "header topbar appbar titlebar",
    "footer": "footer bottombar",
    "modal": "modal dialog popup overlay sheet",
    "tooltip": "tooltip hint popover",
    "progress": "progress loading spinner loader",
    "tab": "tab tabs tabcontrol tabview",
    "badge": "badge tag chip pill notification",
    "avatar": "avatar profile user-image userimage",
    "divider": "divider separator line hr",
    "spacer": "spacer gap padding",
    "label": "label title text caption subtitle heading description",
}

_FAMILY_ROLES = {
    "button": (SemanticRole.BUTTON, Confidence.HIGH),
    "input": (SemanticRole.INPUT_FIELD, Confidence.HIGH),
    "toggle": (SemanticRole.TOGGLE, Confidence.HIGH),
    "slider": (SemanticRole.SLIDER, Confidence.HIGH),
    "dropdown": (SemanticRole.DROPDOWN, Confidence.HIGH),
    "image": (SemanticRole.IMAGE, Confidence.HIGH),
    "icon": (SemanticRole.ICON, Confidence.HIGH),
    "scroll": (SemanticRole.SCROLL_VIEW, Confidence.HIGH),
    "list": (SemanticRole.LIST, Confidence.MEDIUM),
    "card": (SemanticRole.CARD, Confidence.MEDIUM),
    "navigation": (SemanticRole.NAVIGATION, Confidence.HIGH),
    "header": (SemanticRole.HEADER, Confidence.HIGH),
    "footer": (SemanticRole.FOOTER, Confidence.HIGH),
    "modal": (SemanticRole.MODAL, Confidence.HIGH),
    "tooltip": (SemanticRole.TOOLTIP, Confidence.HIGH),
    "progress": (SemanticRole.PROGRESS_BAR, Confidence.HIGH),
    "tab": (SemanticRole.TAB_CONTROL, Confidence.MEDIUM),
    "badge": (SemanticRole.BADGE, Confidence.MEDIUM),
    "avatar": (SemanticRole.AVATAR, Confidence.HIGH),
    "divider": (SemanticRole.DIVIDER, Confidence.MEDIUM),
    "spacer": (SemanticRole.SPACER, Confidence.MEDIUM),
    "label": (SemanticRole.LABEL, Confidence.LOW),
}

KEYWORD_FAMILIES: tuple[KeywordFamily, ...] = tuple(
    KeywordFamily(
        name=name,
        role=_FAMILY_ROLES[name][0],
        confidence=_FAMILY_ROLES[name][1],
        keywords=frozenset(_NON_ALNUM.sub("", k) for k in keywords.split()),
    )
    for name, keywords in _FAMILY_KEYWORDS.items()
)


def match_name(name: str) -> tuple[KeywordFamily, str] | None:
    """Find the first keyword family whose keyword appears as a whole token.

    Returns:
        (family, matched keyword), or None.
    """
    candidates = _candidates(tokenize_name(name))
    for family in KEYWORD_FAMILIES:
        keyword = family.matches(candidates)
        if keyword:
            return family, keyword
    return None


# =============================================================================
# Rules
# =============================================================================


def _result(role: SemanticRole, confidence: Confidence, reason: str) -> Classification:
    return Classification(
        role=role,
        confidence=confidence,
        reason=reason,
        source=ClassificationSource.RULE,
    )


def _is_thin(width: float, height: float, ratio: float) -> bool:
    return width > height * ratio or height > width * ratio


def structural_kind_rule(node: Node) -> Classification | None:
    """Roles implied by the structural kind alone."""
    if node.kind == NodeKind.TEXT:
        return _result(SemanticRole.LABEL, Confidence.VERY_HIGH, "text node")
    if node.kind.is_vector_primitive:
        return _result(SemanticRole.ICON, Confidence.MEDIUM, "vector primitive")
    if node.kind == NodeKind.RECTANGLE:
        if node.has_image_fill:
            return _result(SemanticRole.IMAGE, Confidence.HIGH, "image rectangle")
        if _is_thin(node.geometry.width, node.geometry.height, 10):
            return _result(SemanticRole.DIVIDER, Confidence.MEDIUM, "thin rectangle")
    return None


def interaction_rule(node: Node) -> Classification | None:
    """Nodes with an interaction action are triggers."""
    if node.has_action:
        return _result(SemanticRole.BUTTON, Confidence.HIGH, "has interaction action")
    return None


def name_pattern_rule(node: Node) -> Classification | None:
    """Match name tokens against the ordered keyword families."""
    match = match_name(node.name)
    if match is None:
        return None
    family, keyword = match
    return _result(family.role, family.confidence, f"name token '{keyword}'")


def structural_heuristic_rule(node: Node) -> Classification | None:
    """Fallback structural signals."""
    child_count = len(node.children)
    width, height = node.geometry.width, node.geometry.height

    if node.has_image_fill and child_count == 0:
        return _result(SemanticRole.IMAGE, Confidence.HIGH, "image fill, no children")
    if node.has_scrolling:
        return _result(SemanticRole.SCROLL_VIEW, Confidence.HIGH, "scrolling enabled")

    if 0 < child_count <= 3 and node.has_text_child:
        if (
            node.has_solid_fill
            and width < 400
            and height < 100
            and node.corner_radius > 0
        ):
            return _result(SemanticRole.BUTTON, Confidence.LOW, "looks like a button")
    if 1 <= child_count <= 2 and node.has_text_child and node.has_stroke:
        return _result(SemanticRole.INPUT_FIELD, Confidence.LOW, "text with stroke")

    if node.kind in (NodeKind.RECTANGLE, NodeKind.FRAME) and width > 0 and height > 0:
        ratio = width / height
        if ratio > 20 or ratio < 0.05:
            return _result(SemanticRole.DIVIDER, Confidence.LOW, "very thin element")
    return None


class RuleEngine:
    """Evaluates the rules in priority order.

    Example:
        >>> engine = RuleEngine()
        >>> engine.classify(Node(id="1", name="Submit_Btn")).role
        <SemanticRole.BUTTON: 'Button'>
    """

    def classify(self, node: Node) -> Classification:
        kind_result = structural_kind_rule(node)
        if kind_result and kind_result.confidence >= Confidence.HIGH:
            return kind_result

        action_result = interaction_rule(node)
        if action_result:
            return action_result

        name_result = name_pattern_rule(node)
        if name_result and name_result.confidence >= Confidence.MEDIUM:
            return name_result

        heuristic_result = structural_heuristic_rule(node)
        if heuristic_result:
            return heuristic_result

        if kind_result:
            return kind_result
        return Classification(
            role=SemanticRole.CONTAINER,
            confidence=Confidence.LOW,
            reason="no rule matched",
            source=ClassificationSource.DEFAULT,
        )


__all__ = [
    "Rule",
    "KeywordFamily",
    "KEYWORD_FAMILIES",
    "tokenize_name",
    "match_name",
    "structural_kind_rule",
    "interaction_rule",
    "name_pattern_rule",
    "structural_heuristic_rule",
    "RuleEngine",
]
