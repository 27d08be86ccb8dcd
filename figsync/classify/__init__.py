"""Semantic type classification.

Ordered local rules with an optional external classifier for nodes the
rules are unsure about.

Example:
    >>> from figsync.classify import TypeClassifier, LLMClassifier
    >>> classifier = TypeClassifier(LLMClassifier(model="claude-haiku-4-5"))
    >>> stats = classifier.classify_document(document)
"""

from .external import (
    ClassificationRequest,
    ClassifierUnavailable,
    ExternalClassifier,
    LLMClassifier,
    build_prompt,
    parse_role,
)
from .lib import ClassificationStats, TypeClassifier, classify_document
from .rules import (
    KEYWORD_FAMILIES,
    KeywordFamily,
    RuleEngine,
    interaction_rule,
    match_name,
    name_pattern_rule,
    structural_heuristic_rule,
    structural_kind_rule,
    tokenize_name,
)

__all__ = [
    # Orchestration
    "TypeClassifier",
    "ClassificationStats",
    "classify_document",
    # Rules
    "RuleEngine",
    "KeywordFamily",
    "KEYWORD_FAMILIES",
    "tokenize_name",
    "match_name",
    "structural_kind_rule",
    "interaction_rule",
    "name_pattern_rule",
    "structural_heuristic_rule",
    # External classifier
    "ExternalClassifier",
    "LLMClassifier",
    "ClassificationRequest",
    "ClassifierUnavailable",
    "build_prompt",
    "parse_role",
]
